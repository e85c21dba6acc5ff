"""Track resolution strategies."""

from collections.abc import Mapping
from types import MappingProxyType

from rapidfuzz import fuzz

from lastfm_provider.domain.dtos import Track
from lastfm_provider.domain.ports import MusicStrategies, TrackResolveStrategy

BEST_MATCH = "best_match"
EXACT_MATCH = "exact_match"


class FuzzyBestMatchStrategy:
    """Pick the candidate whose title and artist are closest to the wanted track.

    Score = average of title and artist similarity (0.0 - 1.0). Candidates below
    the threshold are rejected, so None means "nothing good enough".
    """

    def __init__(self, threshold: float = 0.85) -> None:
        self.threshold = threshold

    def score(self, wanted: Track, candidate: Track) -> float:
        title = fuzz.ratio(wanted.name.lower(), candidate.name.lower()) / 100.0
        artist = fuzz.ratio(wanted.artist.lower(), candidate.artist.lower()) / 100.0
        return (title + artist) / 2

    def resolve(self, wanted: Track, candidates: list[Track]) -> Track | None:
        best: Track | None = None
        best_score = -1.0
        for candidate in candidates:
            score = self.score(wanted, candidate)
            if score > best_score:
                best, best_score = candidate, score
        return best if best_score >= self.threshold else None


class ExactMatchStrategy:
    """Case-insensitive exact title + artist match."""

    def resolve(self, wanted: Track, candidates: list[Track]) -> Track | None:
        for candidate in candidates:
            if (
                candidate.name.casefold() == wanted.name.casefold()
                and candidate.artist.casefold() == wanted.artist.casefold()
            ):
                return candidate
        return None


class LastFmMusicStrategies(MusicStrategies):
    """Strategies the Last.fm provider offers to the host."""

    def __init__(self, match_threshold: float = 0.85) -> None:
        self._strategies: Mapping[str, TrackResolveStrategy] = MappingProxyType(
            {
                BEST_MATCH: FuzzyBestMatchStrategy(match_threshold),
                EXACT_MATCH: ExactMatchStrategy(),
            }
        )

    @property
    def strategies(self) -> Mapping[str, TrackResolveStrategy]:
        return self._strategies

    def get_strategy(self, name: str) -> TrackResolveStrategy:
        """Look up a strategy by name.

        Raises:
            KeyError: If no strategy has that name
        """
        try:
            return self._strategies[name]
        except KeyError:
            raise KeyError(
                f"No strategy named '{name}', available: {', '.join(self._strategies)}"
            ) from None

    @property
    def track_resolver(self) -> TrackResolveStrategy:
        """The default resolver used by the type converter."""
        return self._strategies[BEST_MATCH]
