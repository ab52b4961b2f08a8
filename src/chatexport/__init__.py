"""chatexport - Convert ChatGPT-Next-Web session exports to CSV and datasets.

Usage:
    from chatexport import CSVFormat, convert_sessions_to_csv, extract_to_dataset, read_store, repair

    store = read_store("~/exports/chat-sessions.json")
    convert_sessions_to_csv(store.sessions, CSVFormat.INLINE, "sessions.csv")
    dataset_json = extract_to_dataset(store.sessions)
    repaired = repair(Path("chat-sessions.json").read_bytes())
"""

from chatexport.core.cancel import CancellationToken
from chatexport.core.errors import (
    ChatExportError,
    ExportSyntaxError,
    FormatError,
    InvalidFormatError,
    OutputError,
)
from chatexport.core.models import Mask, Message, Session, Stat, Store
from chatexport.dataset import extract_to_dataset
from chatexport.decode import decode, read_store
from chatexport.projections import (
    CSVFormat,
    ProjectionResult,
    TabularResult,
    convert_sessions_to_csv,
    create_separate_csv_files,
    project,
)
from chatexport.repair import repair

__all__ = [
    "CSVFormat",
    "CancellationToken",
    "ChatExportError",
    "ExportSyntaxError",
    "FormatError",
    "InvalidFormatError",
    "Mask",
    "Message",
    "OutputError",
    "ProjectionResult",
    "Session",
    "Stat",
    "Store",
    "TabularResult",
    "convert_sessions_to_csv",
    "create_separate_csv_files",
    "decode",
    "extract_to_dataset",
    "project",
    "read_store",
    "repair",
]

__version__ = "0.1.0"
