from .filesystem import FilesystemRoundArchive
from .interface import RoundArchive, RoundRecord, RoundWinner

__all__ = ["FilesystemRoundArchive", "RoundArchive", "RoundRecord", "RoundWinner"]
