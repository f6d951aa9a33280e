"""Artist credit splitting and canonical artist names.

A raw credit such as ``"Drake feat. Rihanna"`` names several artists. The
resolver breaks it into individual names on commas, ampersands and the
featuring separators, unless the credit contains one of the curated band or
duo names in ``EXCEPTION_LIST``. In that case the whole credit is a single
artist, even when the match is only part of a longer compound credit
(``"Tyler, The Creator & Pharrell"`` stays whole).
"""
import re
from typing import Iterable, List, Optional, Tuple

# Acts whose names must never be split. Matched as
# case-insensitive substrings, first match wins.
EXCEPTION_LIST: Tuple[str, ...] = (
    'Tyler, The Creator',
    'Portugal, The Man',
    'Dexys Midnight Runners',
    'Earth, Wind & Fire',
    'Crosby, Stills & Nash',
    'Crosby, Stills, Nash & Young',
    'Emerson, Lake & Palmer',
    'Blood, Sweat & Tears',
    'Peter, Paul & Mary',
    'Simon & Garfunkel',
    'Hall & Oates',
    'Ike & Tina Turner',
    'Sonny & Cher',
    'Brooks & Dunn',
    'Tegan & Sara',
    'Angus & Julia Stone',
    'She & Him',
    'Hootie & The Blowfish',
    'Huey Lewis & The News',
    'Me First & the Gimme Gimmes',
    'Toots & The Maytals',
    'Martha & The Vandellas',
    'Iron & Wine',
    'Nick Cave & The Bad Seeds',
    'Bob Marley & The Wailers',
    'The Mamas & The Papas',
    'Tom Petty & The Heartbreakers',
    'Derek & The Dominos',
    'Captain & Tennille',
    'Ashford & Simpson',
    'Sam & Dave',
    'Peaches & Herb',
    'Richard & Linda Thompson',
    'Bob Seger & The Silver Bullet Band',
    'Brownie McGhee & Sonny Terry',
    'Gladys Knight & The Pips',
    'Little Anthony & The Imperials',
    'Gary Puckett & The Union Gap',
    'Smokey Robinson & The Miracles',
    'Sly & The Family Stone',
    'Dr. Hook & The Medicine Show',
    'Emerson, Lake & Powell',
)

SEPARATOR_PATTERN = re.compile(r'[,&]|\s+(?:feat\.|featuring|ft\.|with)\s+', re.IGNORECASE)


class ArtistNameResolver:
    """Maps raw artist credits to canonical artist names"""

    def __init__(self, exceptions: Iterable[str] = EXCEPTION_LIST):
        if exceptions is None:
            raise TypeError("exceptions must be a sequence of artist names, not None")
        self._exceptions: Tuple[str, ...] = tuple(exceptions)
        # index-aligned with _exceptions
        self._folded = tuple(name.casefold() for name in self._exceptions)

    @property
    def exceptions(self) -> Tuple[str, ...]:
        return self._exceptions

    def matching_exception(self, raw: str) -> Optional[str]:
        """Return the first exception entry contained in ``raw``, if any."""
        folded = raw.casefold()
        for name, folded_name in zip(self._exceptions, self._folded):
            if folded_name and folded_name in folded:
                return name
        return None

    def split(self, raw: str) -> List[str]:
        """
        Split a raw credit into individual artist names.

        Args:
            raw: The unprocessed artist credit (may be empty)

        Returns:
            ``[raw]`` when an exception entry matches, otherwise the trimmed,
            non-empty pieces between separators in input order.

        Raises:
            TypeError: If ``raw`` is None
        """
        if raw is None:
            raise TypeError("raw artist credit must be a string, not None")

        if self.matching_exception(raw) is not None:
            return [raw]

        return [part.strip() for part in SEPARATOR_PATTERN.split(raw) if part.strip()]

    def canonical_names(self, raw: str) -> List[str]:
        """Split ``raw`` and trim each name, dropping empties and repeats"""
        names: List[str] = []
        for name in self.split(raw):
            name = name.strip()
            if name and name not in names:
                names.append(name)
        return names


default_resolver = ArtistNameResolver()


def split_artist_credit(raw: str) -> List[str]:
    """Split ``raw`` with the default exception list"""
    return default_resolver.split(raw)
