"""Basic tests for gofr_dr package."""


def test_import_gofr_dr():
    """Test that gofr_dr can be imported."""
    import gofr_dr

    assert hasattr(gofr_dr, "__version__")
    assert gofr_dr.__version__ == "1.0.0"


def test_version_format():
    """Test that version follows semver format."""
    import gofr_dr

    parts = gofr_dr.__version__.split(".")
    assert len(parts) == 3
    assert all(p.isdigit() for p in parts)


def test_public_exports():
    """Test that the service and error taxonomy are exported at top level."""
    import gofr_dr

    for name in ("BackupService", "BackupConfig", "NotFoundError", "ConflictError", "IntegrityError"):
        assert name in gofr_dr.__all__
        assert hasattr(gofr_dr, name)
