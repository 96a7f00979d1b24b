"""End-to-end launch pipeline tests with a recording process runner."""

import json

import pytest
import yaml

from nexa_launch.core.exceptions import (
    DataStagingError,
    EmptyTopologyError,
    MissingCredentialError,
    RemoteExecutionError,
    TransferError,
)
from nexa_launch.launch.run import RunContext, TrainingLaunch

DATA_INPUT = {
    "namenode_uri": "hdfs://namenode:8020/",
    "source_dir": "/user/trainer/parts",
    "mounted_dir": "mnt/input",
}


@pytest.mark.launch
def test_local_run_executes_trainer(make_config, runner, workdir):
    result = TrainingLaunch(make_config(), runner).run()

    assert result.invocation.target is None
    assert runner.calls == [
        ("cntk", f"configFile={workdir / 'base.cntk'}", f"configFile={workdir / 'override.cntk'}")
    ]
    assert runner.cwds == [workdir]
    assert result.output == "ran cntk"
    assert result.cleanup is None


@pytest.mark.launch
def test_distributed_run_sequence(make_config, runner, workdir, tmp_path):
    result = TrainingLaunch(make_config(nodes=["gpu-a,4", "gpu-b,2"]), runner).run()

    identity = str(tmp_path / "ssh" / "identity")
    assert runner.programs() == ["hdfs", "hdfs", "hdfs", "scp", "ssh", "scp", "ssh"]
    push, train, pull, remove = runner.calls[3:]
    assert push == ("scp", "-i", identity, "-r", "-o", "StrictHostKeyChecking=no", str(workdir), f"trainer@gpu-a:{workdir}")
    assert train[:6] == ("ssh", "-i", identity, "-o", "StrictHostKeyChecking=no", "trainer@gpu-a")
    assert train[6:10] == ("mpirun", "-n", "4", "--npernode")
    assert train[-1] == "parallelTrain=true"
    assert pull[-2:] == (f"trainer@gpu-a:{workdir / 'out' / 'Models'}", str(workdir / "out"))
    assert remove[-3:] == ("rm", "-r", str(workdir))

    assert result.model_dir == workdir / "out" / "Models"
    assert result.model_dir.is_dir()
    assert result.cleanup.ok
    assert result.cleanup.attempted == [f"rm -r {workdir}"]
    saved = yaml.safe_load((workdir / "out" / "launch_resolved.yaml").read_text())
    assert saved["nodes"] == ["gpu-a,4", "gpu-b,2"]
    assert json.loads((workdir / "out" / "run_metadata.json").read_text())["output_dir"] == str(workdir / "out")


@pytest.mark.launch
def test_config_files_exist_before_working_dir_push(make_config, runner, workdir):
    seen = {}
    original = runner.run

    def spy(command, **kwargs):
        if command[0] == "scp" and "seen" not in seen:
            seen["seen"] = sorted(path.name for path in workdir.glob("*.cntk"))
        return original(command, **kwargs)

    runner.run = spy
    TrainingLaunch(make_config(nodes=["gpu-a"]), runner).run()
    assert seen["seen"] == ["base.cntk", "override.cntk"]


@pytest.mark.launch
def test_distributed_run_with_hdfs_input(make_config, runner, workdir):
    result = TrainingLaunch(make_config(nodes=["gpu-a,2"], distributed_input=DATA_INPUT), runner).run()

    assert runner.programs() == [
        "hdfs", "hdfs", "hdfs",  # credential
        "scp",  # working dir
        "ssh", "hdfs", "scp",  # mkdir, merge, push merged input
        "ssh",  # train
        "scp",  # pull models
        "ssh", "hdfs", "ssh", "ssh",  # cleanup
    ]
    assert runner.matching("-getmerge", "hdfs://namenode:8020/user/trainer/parts/*.txt", str(workdir / "merged-input.txt"))
    assert runner.matching("-rm", "-r", "hdfs://namenode:8020/user/trainer/parts")
    assert runner.matching("rmdir", "/mnt/input")
    assert result.cleanup.ok
    assert result.staged_input.remote_file == "/mnt/input/merged-input.txt"
    assert result.staged_input.local_file == workdir / "merged-input.txt"


@pytest.mark.launch
def test_missing_credential_stops_everything(make_config, runner):
    runner.fail_when("-test", returncode=1, output="")
    with pytest.raises(MissingCredentialError):
        TrainingLaunch(make_config(nodes=["gpu-a"]), runner).run()
    assert runner.programs() == ["hdfs"]


@pytest.mark.launch
def test_empty_topology_fails_before_io(make_config, runner):
    with pytest.raises(EmptyTopologyError):
        TrainingLaunch(make_config(distributed=True), runner).run()
    assert runner.calls == []


@pytest.mark.launch
def test_trainer_failure_still_cleans_up_and_reraises(make_config, runner, workdir):
    runner.fail_when("mpirun", returncode=134, output="segfault")
    with pytest.raises(RemoteExecutionError) as info:
        TrainingLaunch(make_config(nodes=["gpu-a"], distributed_input=DATA_INPUT), runner).run()

    assert info.value.exit_code == 134
    assert runner.matching("rm", "-r", str(workdir))
    assert runner.matching("rmdir", "/mnt/input")
    # input is kept for a retry
    assert not runner.matching("-rm", "-r", "hdfs://namenode:8020/user/trainer/parts")
    assert not runner.matching("trainer@gpu-a:" + str(workdir / "out" / "Models"))


@pytest.mark.launch
def test_cleanup_failure_does_not_mask_original_error(make_config, runner):
    runner.fail_when("-getmerge", output="no files")
    runner.fail_when("rm", "-r", output="cannot remove")
    with pytest.raises(DataStagingError):
        TrainingLaunch(make_config(nodes=["gpu-a"], distributed_input=DATA_INPUT), runner).run()
    assert "mpirun" not in [token for call in runner.calls for token in call]


@pytest.mark.launch
def test_cleanup_failure_after_success_is_reported(make_config, runner, workdir):
    runner.fail_when("rm", "-r", str(workdir), output="busy")
    result = TrainingLaunch(make_config(nodes=["gpu-a"]), runner).run()
    assert result.output == "ran ssh"
    assert not result.cleanup.ok


@pytest.mark.launch
def test_push_failure_skips_training(make_config, runner, workdir):
    runner.fail_when("scp", f"trainer@gpu-a:{workdir}", output="no route to host")
    with pytest.raises(TransferError) as info:
        TrainingLaunch(make_config(nodes=["gpu-a"]), runner).run()
    assert info.value.operation == "push"
    assert not runner.matching("mpirun")
    assert runner.matching("rm", "-r", str(workdir))


def test_plan_touches_no_remote_host(make_config, runner, workdir):
    invocation = TrainingLaunch(make_config(nodes=["gpu-a,3"]), runner).plan()
    assert invocation.host == "gpu-a"
    assert "-n 3" in invocation.command_line()
    assert (workdir / "base.cntk").exists()
    assert runner.calls == []


def test_run_context_paths(make_config, workdir):
    ctx = TrainingLaunch(make_config(nodes=["gpu-a"], distributed_input=DATA_INPUT)).context()
    assert isinstance(ctx, RunContext)
    assert ctx.model_dir == workdir / "out" / "Models"
    assert ctx.remote_working_dir == workdir.as_posix()
    assert ctx.merged_input_path(ctx.distributed_input) == workdir / "merged-input.txt"
    assert [block.name for block in ctx.blocks] == ["base", "override"]


@pytest.mark.launch
def test_local_inline_run_passes_block_text_unchanged(make_config, runner):
    blocks = [
        {"name": "base", "lines": ["desc=don't", 'command="train:test"']},
        {"name": "override", "lines": ["note=a | b; $HOME"]},
    ]
    result = TrainingLaunch(make_config(file_based=False, blocks=blocks), runner).run()
    assert runner.calls == [("cntk", "desc=don't command=\"train:test\"", "note=a | b; $HOME")]
    assert runner.calls[0] == result.invocation.argv


@pytest.mark.launch
def test_local_run_in_working_dir_with_space(make_config, runner, tmp_path):
    workdir = tmp_path / "my work"
    TrainingLaunch(make_config(working_dir=str(workdir)), runner).run()
    assert runner.calls == [
        ("cntk", f"configFile={workdir / 'base.cntk'}", f"configFile={workdir / 'override.cntk'}")
    ]
    assert runner.cwds == [workdir]


@pytest.mark.launch
def test_unexpected_error_during_training_still_cleans_up(make_config, runner, workdir):
    record = runner.run

    def run(command, **kwargs):
        if "mpirun" in command:
            raise PermissionError(13, "Permission denied", "ssh")
        return record(command, **kwargs)

    runner.run = run
    with pytest.raises(PermissionError):
        TrainingLaunch(make_config(nodes=["gpu-a"]), runner).run()
    assert runner.matching("rm", "-r", str(workdir))


def test_base_and_override_shorthand_wrap_blocks(make_config):
    ctx = TrainingLaunch(make_config(base_config="command=train", override_config=["lr=0.1"])).context()
    assert [block.name for block in ctx.blocks] == ["baseConfig", "base", "override", "overrideConfig"]
    assert ctx.blocks[0].lines == ("command=train",)
    assert ctx.blocks[-1].lines == ("lr=0.1",)
