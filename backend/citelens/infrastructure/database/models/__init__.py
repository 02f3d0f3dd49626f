from .embedding_record import EmbeddingRecordModel
from .citation import CitationModel, KeywordModel, UrlRankingModel
from .analysis import AnalysisModel
from .vector_index_entry import VectorIndexEntryModel

__all__ = [
    "EmbeddingRecordModel",
    "CitationModel",
    "KeywordModel",
    "UrlRankingModel",
    "AnalysisModel",
    "VectorIndexEntryModel",
]
