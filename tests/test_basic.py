"""Tests for the dependency_updates package."""

import pytest


def test_package_import():
    """Test that the package can be imported."""
    import dependency_updates
    assert dependency_updates.__version__ == "0.1.0"


def test_cli_import():
    """Test that CLI module can be imported."""
    from dependency_updates.cli import main
    assert callable(main)


def test_analyzer_import():
    """Test that analyzer module can be imported."""
    from dependency_updates.analyzer import AnalysisService, DependencyAnalyzer
    assert DependencyAnalyzer is not None
    assert AnalysisService is not None


def test_error_taxonomy():
    """Fatal input errors are ValueErrors; all share a base class."""
    from dependency_updates import errors

    assert issubclass(errors.MalformedGraphInput, ValueError)
    assert issubclass(errors.MalformedAdvisory, ValueError)
    for exc in (
        errors.MalformedGraphInput,
        errors.MetadataUnavailable,
        errors.AdvisoryDataUnavailable,
        errors.UpdateDataUnavailable,
        errors.PersistenceFailure,
        errors.AnalysisInProgress,
    ):
        assert issubclass(exc, errors.AnalysisError)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
