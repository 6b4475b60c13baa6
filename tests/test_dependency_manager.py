"""
Tests for vmware_sign_manager.core.dependency_manager.
"""

import pytest

from vmware_sign_manager.core import dependency_manager as dm
from vmware_sign_manager.core.dependency_manager import DependencyManager


@pytest.fixture
def which_missing(monkeypatch):
    """Make shutil.which report the given commands as missing."""
    def _set(*missing):
        def fake_which(command, path=None):
            return None if command in missing else f"/usr/bin/{command}"
        monkeypatch.setattr(dm.shutil, "which", fake_which)
    return _set


class TestIsRoot:
    """Tests for privilege detection."""

    def test_root(self, monkeypatch, fake_runner):
        monkeypatch.setattr(dm.os, "geteuid", lambda: 0)
        assert DependencyManager(fake_runner).is_root()

    def test_not_root(self, monkeypatch, fake_runner):
        monkeypatch.setattr(dm.os, "geteuid", lambda: 1000)
        assert not DependencyManager(fake_runner).is_root()


class TestCheckDependencies:
    """Tests for check_dependencies."""

    def test_all_installed(self, which_missing, fake_runner):
        which_missing()
        result = DependencyManager(fake_runner).check_dependencies()

        assert result['all_installed']
        assert result['missing'] == []
        assert set(result['dependencies']) == {'openssl', 'mokutil', 'modinfo'}

    def test_missing(self, which_missing, fake_runner):
        which_missing('mokutil')
        result = DependencyManager(fake_runner).check_dependencies()

        assert not result['all_installed']
        assert result['missing'] == ['mokutil']

    def test_sbin_is_searched(self, monkeypatch, fake_runner):
        """modinfo lives in /sbin on Debian, outside a normal user PATH."""
        seen = []
        monkeypatch.setenv("PATH", "/usr/bin")
        monkeypatch.setattr(dm.shutil, "which", lambda command, path=None: seen.append(path) or "/x")

        DependencyManager(fake_runner).check_dependencies()

        assert all("/usr/sbin" in path and "/sbin" in path for path in seen)


class TestEnsureDependencies:
    """Tests for the interactive install flow."""

    def test_nothing_missing_never_asks(self, which_missing, fake_runner):
        which_missing()

        def confirm(command, package):
            raise AssertionError("should not ask")

        result = DependencyManager(fake_runner).ensure_dependencies(confirm)

        assert result['success']
        assert result['installed'] == []
        assert fake_runner.commands == []

    def test_refused(self, which_missing, fake_runner):
        which_missing('openssl')

        result = DependencyManager(fake_runner).ensure_dependencies(lambda c, p: False)

        assert not result['success']
        assert result['refused'] == 'openssl'
        assert fake_runner.commands == []

    def test_accepted_installs_package(self, which_missing, fake_runner):
        which_missing('modinfo')
        asked = []

        result = DependencyManager(fake_runner).ensure_dependencies(
            lambda c, p: asked.append((c, p)) or True
        )

        assert result['success']
        assert result['installed'] == ['kmod']
        assert asked == [('modinfo', 'kmod')]
        assert fake_runner.commands == [["apt-get", "install", "-y", "kmod"]]
        assert fake_runner.envs == [{'DEBIAN_FRONTEND': 'noninteractive'}]

    def test_install_failure(self, which_missing, fake_runner):
        which_missing('mokutil', 'openssl')
        fake_runner.returncodes['apt-get'] = 100

        result = DependencyManager(fake_runner).ensure_dependencies(lambda c, p: True)

        assert not result['success']
        assert result['refused'] is None
        assert "100" in result['message']
        # stops at the first failure
        assert len(fake_runner.commands) == 1
