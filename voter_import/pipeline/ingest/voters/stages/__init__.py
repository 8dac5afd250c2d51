from voter_import.pipeline.ingest.voters.stages.drain import DrainStage
from voter_import.pipeline.ingest.voters.stages.persist_categories import PersistCategoriesStage
from voter_import.pipeline.ingest.voters.stages.purge import PurgeStage
from voter_import.pipeline.ingest.voters.stages.reset_categories import ResetCategoriesStage
from voter_import.pipeline.ingest.voters.stages.stream import StreamStage

__all__ = [
    "DrainStage",
    "PersistCategoriesStage",
    "PurgeStage",
    "ResetCategoriesStage",
    "StreamStage",
]
