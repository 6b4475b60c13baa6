"""
Pytest configuration and fixtures for VMware Sign Manager tests.
"""

import io
from pathlib import Path

import pytest

from vmware_sign_manager.utils.dialogs import ConsoleDialogs
from vmware_sign_manager.utils.i18n import I18n


class FakeRunner:
    """Records commands instead of running them."""

    def __init__(self):
        self.commands = []
        self.envs = []
        self.returncodes = {}
        self.hooks = {}

    def run(self, cmd, env_overrides=None):
        cmd = [str(part) for part in cmd]
        self.commands.append(cmd)
        self.envs.append(env_overrides)

        program = Path(cmd[0]).name
        hook = self.hooks.get(program)
        if hook:
            hook(cmd)

        returncode = self.returncodes.get(program, 0)
        return {'success': returncode == 0, 'returncode': returncode, 'output': ''}

    def programs(self):
        return [Path(cmd[0]).name for cmd in self.commands]


class FakeVMwareManager:
    """Module paths and signers without modinfo."""

    VMWARE_MODULES = ("vmmon", "vmnet")

    def __init__(self, paths=None, signers=None):
        self.kernel_version = "6.8.0-test"
        self.paths = paths or {}
        self.signers = signers or {}
        self.install_calls = 0
        self.install_success = True

    def get_module_path(self, module_name):
        return self.paths.get(module_name)

    def get_module_signer(self, module_path):
        return self.signers.get(Path(module_path).stem, "")

    def install_all_modules(self):
        self.install_calls += 1
        return {
            'success': self.install_success,
            'returncode': 0 if self.install_success else 1,
            'message': 'VMware modules installed' if self.install_success else 'vmware-modconfig failed'
        }


class ScriptedInput:
    """input() replacement fed from a list; raises EOFError when exhausted."""

    def __init__(self, answers):
        self.answers = list(answers)
        self.prompts = []

    def __call__(self, prompt=""):
        self.prompts.append(prompt)
        if not self.answers:
            raise EOFError
        answer = self.answers.pop(0)
        if isinstance(answer, BaseException):
            raise answer
        return answer


def write_openssl_outputs(cmd):
    """Create the files an openssl req invocation would write."""
    Path(cmd[cmd.index("-keyout") + 1]).write_text("private key")
    Path(cmd[cmd.index("-out") + 1]).write_bytes(b"\x30\x82 certificate")


@pytest.fixture
def fake_runner():
    return FakeRunner()


@pytest.fixture
def openssl_runner(fake_runner):
    """Fake runner whose openssl calls produce key files."""
    fake_runner.hooks["openssl"] = write_openssl_outputs
    return fake_runner


@pytest.fixture
def fake_vmware():
    return FakeVMwareManager()


@pytest.fixture
def i18n(tmp_path):
    """English translations, language preference stored under tmp_path."""
    instance = I18n(config_file=tmp_path / "config" / "language.conf")
    instance.current_lang = 'en'
    return instance


@pytest.fixture
def console():
    return io.StringIO()


@pytest.fixture
def make_dialogs(console):
    """Build ConsoleDialogs with scripted answers."""
    def _make(answers=()):
        scripted = ScriptedInput(answers)
        return ConsoleDialogs(stream=console, input_func=scripted), scripted
    return _make
