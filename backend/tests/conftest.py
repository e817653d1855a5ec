import pytest


@pytest.fixture
def projects_dir(tmp_path):
    d = tmp_path / "claude" / "projects"
    d.mkdir(parents=True)
    return d


@pytest.fixture
def project_dir(projects_dir):
    d = projects_dir / "-tmp-project"
    d.mkdir()
    return d
