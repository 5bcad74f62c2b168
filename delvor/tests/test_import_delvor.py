"""Smoke test to ensure top-level package import works without triggering
circular import errors. This guards against regressions in the flat API
layer (`delvor/__init__.py`).
"""

def test_import_delvor_smoke():
    import delvor  # noqa: F401
    # A couple of light sanity checks on expected public symbols
    assert hasattr(delvor, 'VoronoiDiagram')
    assert hasattr(delvor, 'check_triangulation')  # lazy wrapper should resolve
    assert callable(delvor.diagnostics.check_triangulation)


def test_public_names_resolve():
    import delvor
    missing = [name for name in delvor.__all__ if not hasattr(delvor, name)]
    assert not missing, missing


def test_lazy_modules_resolve_attributes():
    import delvor
    from delvor.core import visualization
    assert delvor.visualization.plot_diagram is visualization.plot_diagram
    assert 'compare_with_scipy' in dir(delvor.diagnostics)
