import pytest

from focusguard.local.console import ExitCode, execute_command
from focusguard.local.credential import CredentialGate
from focusguard.local.lifecycle import LifecycleController


def answers(*values):
    replies = iter(values)
    return lambda _message: next(replies)


@pytest.fixture
def fresh_controller(store, guard, registrar):
    return LifecycleController(store, CredentialGate(store.credential.path), guard, registrar, rollback_on_failure=False, python_executable="/usr/bin/python3")


def test_setup_start_stop(store, fresh_controller, launchctl, chflags):
    assert execute_command(None, [], store=store, prompt=answers("abc", "abc")) is ExitCode.OK
    assert store.credential.path.exists()

    assert execute_command("start", [], store=store, prompt=answers("abc"), controller=fresh_controller) is ExitCode.OK
    assert len(launchctl.loaded) == 2

    assert execute_command("stop", [], store=store, prompt=answers("abc"), controller=fresh_controller) is ExitCode.OK
    assert launchctl.loaded == set()
    assert chflags.flagged == set()


def test_setup_twice_is_refused_without_prompting(gate, store):
    def prompt(_message):
        raise AssertionError("setup must not prompt once a credential exists")

    assert execute_command(None, [], store=store, prompt=prompt) is ExitCode.FAILURE
    assert gate.verify("abc") is None


def test_setup_confirmation_mismatch(store):
    assert execute_command(None, [], store=store, prompt=answers("abc", "abd")) is ExitCode.FAILURE
    assert not store.credential.path.exists()


def test_start_with_wrong_password(controller, store, launchctl):
    assert execute_command("start", [], store=store, prompt=answers("nope"), controller=controller) is ExitCode.FAILURE
    assert launchctl.calls == []


def test_start_before_setup(store, fresh_controller):
    assert execute_command("start", [], store=store, prompt=answers("abc"), controller=fresh_controller) is ExitCode.FAILURE


def test_resource_failure_exit_code(controller, store, launchctl):
    launchctl.fail_load.add("com.focusguard.monitor")
    assert execute_command("start", [], store=store, prompt=answers("abc"), controller=controller) is ExitCode.FAILURE


def test_interrupted_prompt(controller, store):
    def prompt(_message):
        raise KeyboardInterrupt

    assert execute_command("stop", [], store=store, prompt=prompt, controller=controller) is ExitCode.FAILURE


@pytest.mark.parametrize("command,args", [
    ("status", []),
    ("restart", []),
    ("start", ["now"]),
    (None, ["extra"]),
])
def test_unknown_invocations_print_usage(store, command, args, capsys):
    assert execute_command(command, args, store=store, prompt=answers()) is ExitCode.USAGE
    assert "Usage: focusguard [start|stop]" in capsys.readouterr().out
