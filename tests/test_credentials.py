"""Credential staging tests."""

import pytest

from nexa_launch.core.exceptions import FileSystemError, MaterializationError, MissingCredentialError
from nexa_launch.launch.credentials import CredentialStager
from nexa_launch.launch.dfs import HadoopFileSystem

SOURCE = "wasb:///MML-GPU/identity"


def _stager(runner, tmp_path):
    return CredentialStager(HadoopFileSystem(runner), SOURCE, tmp_path / "ssh" / "MML-GPU" / "identity")


def test_stage_copies_then_restricts_permissions(runner, tmp_path):
    credential = _stager(runner, tmp_path).stage()
    local = tmp_path / "ssh" / "MML-GPU" / "identity"

    assert local.parent.is_dir()
    assert credential.local_path == local
    assert credential.remote_source_path == SOURCE
    assert credential.permissions == "700"
    assert runner.calls == [
        ("hdfs", "dfs", "-test", "-e", SOURCE),
        ("hdfs", "dfs", "-copyToLocal", "-f", SOURCE, str(local)),
        ("hdfs", "dfs", "-chmod", "700", f"file://{local.as_posix()}"),
    ]


def test_missing_source_raises_with_setup_hint(runner, tmp_path):
    runner.fail_when("-test", returncode=1, output="")
    with pytest.raises(MissingCredentialError) as info:
        _stager(runner, tmp_path).stage()
    assert "passwordless ssh setup" in info.value.message
    assert info.value.message.endswith(SOURCE)
    assert info.value.code == "missing_credential"
    assert len(runner.calls) == 1


def test_copy_race_reported_as_missing(runner, tmp_path):
    runner.fail_when("-copyToLocal", output="copyToLocal: `identity': No such file or directory")
    with pytest.raises(MissingCredentialError):
        _stager(runner, tmp_path).stage()


def test_other_copy_failures_stay_generic(runner, tmp_path):
    runner.fail_when("-copyToLocal", output="Permission denied")
    with pytest.raises(FileSystemError) as info:
        _stager(runner, tmp_path).stage()
    assert not isinstance(info.value, MissingCredentialError)
    assert info.value.exit_code == 1


def test_existence_check_errors_are_not_missing(runner, tmp_path):
    runner.fail_when("-test", returncode=255, output="connection refused")
    with pytest.raises(FileSystemError):
        _stager(runner, tmp_path).stage()


def test_unusable_identity_directory_is_a_launch_error(runner, tmp_path):
    blocker = tmp_path / "ssh"
    blocker.write_text("not a directory")
    stager = CredentialStager(HadoopFileSystem(runner), SOURCE, blocker / "MML-GPU" / "identity")
    with pytest.raises(MaterializationError) as info:
        stager.stage()
    assert info.value.path == str(blocker / "MML-GPU")
    assert runner.calls == []
