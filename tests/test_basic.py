"""
Basic tests to verify test environment setup.
"""

from gallerypub import __description__, __version__


def test_version() -> None:
    """Test that version is defined."""
    assert __version__ == "0.1.0"


def test_description() -> None:
    """Test that description is defined."""
    assert __description__ == "Personal photo gallery publishing tool"
