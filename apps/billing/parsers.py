"""
Meter reading file parsing.

Reads an uploaded .xlsx, .xls or .csv sheet with pandas and turns it into
``{account_number, new_reading}`` records in file order. Values are passed
through as found; validating them is the reading processor's job.
"""

import logging
from pathlib import Path

import pandas as pd

from apps.core.exceptions import ReadingsFileError

logger = logging.getLogger(__name__)

EXCEL_SUFFIXES = ('.xlsx', '.xls')
CSV_SUFFIXES = ('.csv',)

# Normalised header -> record key
COLUMN_ALIASES = {
    'accountnumber': 'account_number',
    'account_number': 'account_number',
    'newreading': 'new_reading',
    'new_reading': 'new_reading',
}


def _normalise(column) -> str:
    return str(column).strip().lower().replace(' ', '_')


def read_readings_frame(source, filename=None) -> pd.DataFrame:
    """
    Load a readings sheet into a DataFrame.

    Args:
        source: A path or a binary file object.
        filename: Name used to pick the format when ``source`` is a file object.

    Raises:
        ReadingsFileError: If the format is unsupported or the file is unreadable.
    """
    name = filename or str(getattr(source, 'name', source))
    suffix = Path(name).suffix.lower()

    try:
        if suffix in EXCEL_SUFFIXES:
            df = pd.read_excel(source, dtype=object)
        elif suffix in CSV_SUFFIXES:
            df = pd.read_csv(source, dtype=object)
        else:
            raise ReadingsFileError(
                detail=f"Unsupported file type '{suffix or name}'. Upload .xlsx, .xls or .csv."
            )
    except ReadingsFileError:
        raise
    except (ValueError, OSError, pd.errors.ParserError, pd.errors.EmptyDataError) as exc:
        logger.warning("Could not read readings file %s: %s", name, exc)
        raise ReadingsFileError(detail=f"Could not read {name}: {exc}")

    return df


def parse_readings(source, filename=None) -> list:
    """
    Parse a readings sheet into records.

    Raises:
        ReadingsFileError: If the sheet is empty or lacks the accountNumber
            and newReading columns.
    """
    df = read_readings_frame(source, filename)

    renamed = {}
    for column in df.columns:
        key = COLUMN_ALIASES.get(_normalise(column))
        if key and key not in renamed.values():
            renamed[column] = key
    df = df.rename(columns=renamed)

    if df.empty or not {'account_number', 'new_reading'} <= set(df.columns):
        raise ReadingsFileError()

    records = []
    for _, row in df.iterrows():
        account_number = row['account_number']
        new_reading = row['new_reading']
        records.append({
            'account_number': '' if pd.isna(account_number) else str(account_number).strip(),
            'new_reading': None if pd.isna(new_reading) else new_reading,
        })

    logger.info("Parsed %d reading rows from %s", len(records), filename or source)
    return records
