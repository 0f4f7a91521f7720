import io

import pytest

from god.supervisor import process_utils
from god.supervisor.task import Task, TaskKind


class TestBuildCommandArgs:
    """Test how command strings become argument vectors."""

    def test_uses_shell_when_available(self):
        assert process_utils.build_command_args("echo hi && exit 2", "sh") == ["sh", "-c", "echo hi && exit 2"]

    def test_splits_when_shell_is_missing(self):
        args = process_utils.build_command_args("nginx -g 'daemon off;'", "no-such-shell-here")
        assert args == ["nginx", "-g", "daemon off;"]

    def test_empty_command_without_shell(self):
        with pytest.raises(ValueError):
            process_utils.build_command_args("   ", "no-such-shell-here")


class TestInterpretExitStatus:
    """Test exit status mapping."""

    @pytest.mark.parametrize("returncode, expected", [(0, 0), (1, 1), (3, 3), (127, 127), (-9, -1), (-15, -1), (None, -1)])
    def test_mapping(self, returncode, expected):
        assert process_utils.interpret_exit_status(returncode) == expected


class TestAttachOutput:
    """Test output capture of a real child process."""

    def test_both_streams_are_prefixed(self):
        task = Task(name="printer", command="printf 'out1\\nout2\\n'; printf 'err1\\n' >&2", kind=TaskKind.INIT)
        out, err = io.StringIO(), io.StringIO()
        process = process_utils.spawn_process(task)
        readers = process_utils.attach_output(process, task.name, stdout=out, stderr=err)

        assert process.wait() == 0
        process_utils.drain_output(readers, timeout=5)

        assert out.getvalue() == "[printer] out1\n[printer] out2\n"
        assert err.getvalue() == "[printer] err1\n"
        assert all(not reader.is_alive() for reader in readers)

    def test_missing_executable_raises(self):
        task = Task(name="ghost", command="definitely-not-a-real-binary-xyz", kind=TaskKind.INIT)
        with pytest.raises(OSError):
            process_utils.spawn_process(task, shell="no-such-shell-here")
