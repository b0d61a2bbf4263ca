"""YAML configuration loading and saving."""

from pathlib import Path

import pytest

from config import ElectionConfig, SystemConfig, load_config, save_config


def test_defaults():
    config = SystemConfig()
    assert config.election.owner == "owner"
    assert config.election.votes == [1, 0, 1, 1, 0]
    assert config.log_level == "INFO"
    assert config.vectors_file == Path("results/reference_vectors.json")


def test_voter_ids():
    election = ElectionConfig(votes=[1, 0], voter_prefix="v")
    assert election.voter_ids() == ["v_0", "v_1"]


@pytest.mark.parametrize("votes", [[1, 2], [-1], [True, 0]])
def test_votes_must_be_binary(votes):
    with pytest.raises(ValueError):
        ElectionConfig(votes=votes)


def test_max_workers_positive():
    with pytest.raises(ValueError):
        ElectionConfig(max_workers=0)


def test_round_trip(tmp_path):
    path = tmp_path / "config.yaml"
    config = SystemConfig(
        election=ElectionConfig(owner="authority", votes=[0, 0, 1], max_workers=2),
        log_dir=tmp_path / "logs",
        results_dir=tmp_path / "results",
        enable_benchmarking=False,
    )
    save_config(config, path)
    loaded = load_config(path)
    assert loaded == config


def test_missing_file_gives_defaults(tmp_path):
    assert load_config(tmp_path / "absent.yaml") == SystemConfig()


def test_unparseable_file_gives_defaults(tmp_path, caplog):
    path = tmp_path / "config.yaml"
    path.write_text("election: [unclosed\n")
    assert load_config(path) == SystemConfig()
    assert "Could not load config file" in caplog.text


def test_partial_file(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("election:\n  votes: [1, 1]\nlog_level: DEBUG\n")
    config = load_config(path)
    assert config.election.votes == [1, 1]
    assert config.election.owner == "owner"
    assert config.log_level == "DEBUG"


@pytest.mark.parametrize("content", [
    "election:\n  votes: [1, 3]\n",
    "- 1\n- 0\n",
    "election: [1, 0]\n",
    "election:\n  max_workers: four\n",
    "election:\n  votes: 5\n",
    "log_dir: null\n",
])
def test_invalid_content_gives_defaults(tmp_path, caplog, content):
    path = tmp_path / "config.yaml"
    path.write_text(content)
    assert load_config(path) == SystemConfig()
    assert "Using default configuration" in caplog.text


def test_debug_mode_forces_debug_logging():
    assert SystemConfig(enable_debug_mode=True).log_level == "DEBUG"


def test_ensure_directories(tmp_path):
    config = SystemConfig(
        log_dir=tmp_path / "logs",
        results_dir=tmp_path / "results",
        vectors_file=tmp_path / "vectors" / "v.json",
    )
    config.ensure_directories()
    assert (tmp_path / "logs").is_dir()
    assert (tmp_path / "results").is_dir()
    assert (tmp_path / "vectors").is_dir()
