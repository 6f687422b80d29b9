"""Reading the GitHub sponsorship export and writing generated documents"""
import json
import logging
import os
import shutil
from dataclasses import dataclass, field
from typing import List, Optional

from sponsortiers.models.document import SponsorsDocument
from sponsortiers.models.sponsor import ExportRecordError, RawSponsor

logger = logging.getLogger(__name__)

class ExportFileError(Exception):
    """Raised when the export file is missing or unreadable"""
    pass

@dataclass
class ExportLoad:
    """Sponsors read from an export, plus the records that had to be skipped"""
    sponsors: List[RawSponsor] = field(default_factory=list)
    skipped_records: int = 0

def load_export(path: str) -> ExportLoad:
    """
    Load every sponsor record from a GitHub sponsorship export.

    Raises:
        ExportFileError: If the file is missing, not JSON, or not a list of records
    """
    if not os.path.isfile(path):
        raise ExportFileError(f"Export file not found: {path}")

    try:
        with open(path, 'r', encoding='utf-8') as f:
            records = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ExportFileError(f"Failed to read export file {path}: {e}") from e

    if not isinstance(records, list):
        raise ExportFileError(f"Export file {path} must contain a list of sponsor records")

    result = ExportLoad()
    for index, record in enumerate(records):
        try:
            result.sponsors.append(RawSponsor.from_dict(record))
        except ExportRecordError as e:
            logger.warning(f"Skipping export record {index}: {e}")
            result.skipped_records += 1

    logger.info(f"Found {len(records)} total sponsorship records")
    return result

def load_document(path: str) -> Optional[SponsorsDocument]:
    """Load a previously generated sponsors.json, or None when it does not exist or is unreadable"""
    if not os.path.isfile(path):
        return None
    try:
        with open(path, 'r', encoding='utf-8') as f:
            return SponsorsDocument.model_validate(json.load(f))
    except (OSError, ValueError) as e:
        logger.error(f"Failed to read or parse {path}: {e}")
        return None

def backup_document(path: str, backup_path: str) -> bool:
    """Copy the current document aside before it is regenerated"""
    if not os.path.isfile(path):
        logger.info(f"No existing {os.path.basename(path)} found")
        return False
    shutil.copyfile(path, backup_path)
    logger.info(f"Backed up current {os.path.basename(path)}")
    return True

def write_document(document: SponsorsDocument, path: str) -> None:
    """Write the document as indented JSON, creating the output directory"""
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(document.to_json_dict(), f, indent=2, ensure_ascii=False)
    logger.info(f"Wrote {path}")
