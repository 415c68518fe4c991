"""Tests for the dependency_gate package."""

import pytest


def test_package_import():
    """Test that the package can be imported."""
    import dependency_gate
    assert dependency_gate.__version__ == "0.1.0"


def test_cli_import():
    """Test that CLI module can be imported."""
    from dependency_gate.cli import main
    assert callable(main)


def test_cli_requires_subcommand():
    from dependency_gate.cli import build_parser

    with pytest.raises(SystemExit):
        build_parser().parse_args([])


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
