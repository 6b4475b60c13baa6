#!/usr/bin/env python3
"""
VMware Sign Manager
Signature des modules vmmon/vmnet pour Secure Boot
Point d'entrée principal
"""

import logging
import os
import sys
from pathlib import Path

from colorama import init as colorama_init

from vmware_sign_manager.console.menu import EXIT_INTERRUPTED, MainMenu
from vmware_sign_manager.core.dependency_manager import DependencyManager
from vmware_sign_manager.core.secureboot_manager import SecureBootManager
from vmware_sign_manager.core.vmware_manager import VMwareManager
from vmware_sign_manager.utils.command_runner import CommandRunner
from vmware_sign_manager.utils.dialogs import ConsoleDialogs
from vmware_sign_manager.utils.i18n import get_i18n
from vmware_sign_manager.utils.logging_setup import setup_logging

EXIT_FAILURE = 1

logger = logging.getLogger(__name__)


def get_work_dir():
    """Dossier des clés et des journaux (VMWARE_SIGN_MANAGER_DIR ou dossier courant)"""
    work_dir = os.environ.get("VMWARE_SIGN_MANAGER_DIR")
    return Path(work_dir) if work_dir else Path.cwd()


def apply_language_override(i18n):
    """Langue imposée par VMWARE_SIGN_MANAGER_LANG, sans toucher à la préférence enregistrée"""
    lang = os.environ.get("VMWARE_SIGN_MANAGER_LANG", "").strip().lower()
    if not lang:
        return
    if not i18n.set_language(lang, save=False):
        logger.warning("Unknown language %r, available: %s",
                       lang, ", ".join(sorted(i18n.get_available_languages())))


def install_missing_dependencies(dependency_manager, dialogs, i18n):
    """
    Propose d'installer les outils manquants
    Returns: True si tout est prêt
    """
    def confirm(command, package):
        return dialogs.show_question(
            i18n._("preflight.missing", command=command, package=package),
            yes_answers=i18n.yes_answers()
        )

    result = dependency_manager.ensure_dependencies(confirm)

    if result['refused']:
        dialogs.show_error(i18n._("preflight.refused", command=result['refused']))
        return False
    if not result['success']:
        dialogs.show_error(i18n._("preflight.install_failed", error=result['message']))
        return False

    if result['installed']:
        dialogs.show_success(i18n._("preflight.installed", packages=", ".join(result['installed'])))
    return True


def main(work_dir=None, dialogs=None):
    """Point d'entrée principal"""
    i18n = get_i18n()
    apply_language_override(i18n)
    if dialogs is None:
        dialogs = ConsoleDialogs()
    if work_dir is None:
        work_dir = get_work_dir()

    runner = CommandRunner(work_dir / SecureBootManager.OUTPUT_LOG_NAME)
    dependency_manager = DependencyManager(runner)

    # Refuser avant toute écriture dans le dossier de travail
    if not dependency_manager.is_root():
        dialogs.show_error(i18n._("preflight.not_root"))
        return EXIT_FAILURE

    work_dir.mkdir(parents=True, exist_ok=True)
    setup_logging(
        work_dir / SecureBootManager.DEBUG_LOG_NAME,
        verbose=bool(os.environ.get("VMWARE_SIGN_MANAGER_DEBUG"))
    )
    logger.info("Starting VMware Sign Manager in %s", work_dir)

    try:
        ready = install_missing_dependencies(dependency_manager, dialogs, i18n)
    except KeyboardInterrupt:
        dialogs.show_line()
        logger.info("Interrupted during dependency check, exiting with status %s", EXIT_INTERRUPTED)
        return EXIT_INTERRUPTED
    if not ready:
        logger.info("Dependency check failed, exiting with status %s", EXIT_FAILURE)
        return EXIT_FAILURE

    vmware_manager = VMwareManager(runner)
    secureboot_manager = SecureBootManager(runner, vmware_manager, base_dir=work_dir)
    menu = MainMenu(secureboot_manager, vmware_manager, dialogs, i18n)

    exit_code = menu.run()
    logger.info("Exiting with status %s", exit_code)
    return exit_code


def run():
    """Console script entry point"""
    colorama_init(autoreset=True)
    sys.exit(main())


if __name__ == "__main__":
    run()
