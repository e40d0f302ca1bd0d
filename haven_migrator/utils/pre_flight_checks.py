import os

from .errors import MigrationError


class PreFlightCheckError(MigrationError):
    """Custom exception for pre-flight check failures."""
    pass


def run_pre_flight_checks(xml_path: str, config: dict) -> None:
    """
    Verifies that the export file and configuration allow an import to start.

    Args:
        xml_path: Path to the WordPress WXR export.
        config: The application configuration dictionary.

    Raises:
        PreFlightCheckError: If any check fails.
    """
    if not xml_path or not os.path.isfile(xml_path):
        raise PreFlightCheckError(
            "Usage: python main.py /path/to/export.xml (export file not found)"
        )
    if not os.access(xml_path, os.R_OK):
        raise PreFlightCheckError(f"Export file is not readable: {xml_path}")

    author_map = (config.get("migration", {}).get("author_map") or "").strip()
    if not author_map:
        raise PreFlightCheckError(
            'AUTHOR_MAP is required. Example: AUTHOR_MAP="alice:alice@example.com,bob:bob@example.com"'
        )

    if not config.get("haven", {}).get("base_url"):
        raise PreFlightCheckError("Haven base URL ('haven.base_url') is empty.")
