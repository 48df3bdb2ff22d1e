"""PII Scanner — find phone, ID, bank card numbers and names in spreadsheet text."""

from .config import Configuration, load_config, load_from_yaml
from .errors import ConfigError, ExportError, NameServiceError, ScannerError, WorkbookError
from .extractor import Category, Extractor
from .name_service import NameExtractor, NameServiceClient
from .processor import ParallelProcessor, ProgressTracker
from .types import (
    CellMatches, ExtractionResult, FileOutcome, FileStatus, FileTask, Match,
    ProcessingReport, ProcessingStatistics,
)
from .validators import validate_bank_card, validate_id_card, validate_phone
from .workbook import ResultWriter, SheetData, WorkbookReader, export_results

__all__ = [
    "Configuration", "load_config", "load_from_yaml",
    "ScannerError", "ConfigError", "WorkbookError", "NameServiceError", "ExportError",
    "Category", "Extractor",
    "NameExtractor", "NameServiceClient",
    "ParallelProcessor", "ProgressTracker",
    "Match", "CellMatches", "ExtractionResult", "FileTask", "FileStatus",
    "FileOutcome", "ProcessingReport", "ProcessingStatistics",
    "validate_phone", "validate_id_card", "validate_bank_card",
    "ResultWriter", "SheetData", "WorkbookReader", "export_results",
]
__version__ = "0.1.0"
