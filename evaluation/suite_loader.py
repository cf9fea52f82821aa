"""Loading and validation of retrieval test suite definitions."""

from pathlib import Path

import yaml
from pydantic import ValidationError

from evaluation.errors import LoadError
from models import TestSuite
from utils.logging import get_logger

logger = get_logger(__name__)


def parse_test_suite(data: object) -> TestSuite:
    """Validate a parsed suite document.

    Args:
        data: Deserialized YAML document

    Returns:
        Validated, immutable TestSuite

    Raises:
        LoadError: If the document does not describe a valid suite
    """
    if not isinstance(data, dict):
        raise LoadError(
            f"Failed to load test suite: expected a mapping, got {type(data).__name__}"
        )

    try:
        suite = TestSuite.model_validate(data)
    except ValidationError as e:
        raise LoadError(f"Failed to load test suite: {e}") from e

    ids = [test.id for test in suite.tests]
    duplicates = sorted({test_id for test_id in ids if ids.count(test_id) > 1})
    if duplicates:
        raise LoadError(f"Failed to load test suite: duplicate test ids {duplicates}")

    return suite


def load_test_suite(path: Path | str) -> TestSuite:
    """Load a test suite from a YAML file.

    Args:
        path: Path to the suite definition

    Returns:
        Validated, immutable TestSuite

    Raises:
        LoadError: If the file is missing, unreadable, or malformed
    """
    path = Path(path)

    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise LoadError(f"Failed to load test suite: {e}") from e
    except yaml.YAMLError as e:
        raise LoadError(f"Failed to load test suite: invalid YAML in {path}: {e}") from e

    suite = parse_test_suite(data)
    logger.info(f"Loaded {len(suite.tests)} retrieval tests from {path}")
    return suite
