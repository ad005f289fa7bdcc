"""
Error taxonomy for the resume ranking engine
"""


class RankingError(Exception):
    """Base class for all ranking engine errors"""
    pass


class InvalidInputError(RankingError):
    """Input rejected before any processing begins"""
    pass


class TextExtractionError(RankingError):
    """A document could not be turned into plain text"""
    pass


class ExtractionFailure(RankingError):
    """A single resume could not be extracted or scored; recovered per item"""

    def __init__(self, source_name: str, reason: str):
        super().__init__(f"{source_name}: {reason}")
        self.source_name = source_name
        self.reason = reason


class JDResolutionError(RankingError):
    """The supplied job description could not be resolved; fatal for a batch"""
    pass


class EnrichmentUnavailable(RankingError):
    """An optional enrichment collaborator is disabled, down or timed out"""
    pass


class LeaderboardNotFoundError(RankingError):
    """No leaderboard or entry exists for the given identifier"""
    pass
