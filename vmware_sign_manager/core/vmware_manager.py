"""
Module de gestion des modules VMware (vmmon, vmnet)
Compilation/installation via vmware-modconfig et localisation des fichiers .ko
"""

import logging
import os
from pathlib import Path

from vmware_sign_manager.utils.command_runner import CommandRunner

logger = logging.getLogger(__name__)


class VMwareManager:
    """Classe principale pour les modules noyau VMware"""

    VMWARE_MODULES = ("vmmon", "vmnet")

    def __init__(self, runner):
        self.runner = runner
        self.kernel_version = os.uname().release

    def install_all_modules(self):
        """
        Compile et installe tous les modules VMware pour le kernel courant
        Returns: dict avec success, returncode, message
        """
        logger.info("Installing VMware modules for kernel %s", self.kernel_version)
        result = self.runner.run(["vmware-modconfig", "--console", "--install-all"])

        if result['success']:
            message = 'VMware modules installed'
        else:
            message = f'vmware-modconfig failed (exit status {result["returncode"]})'
            logger.info(message)

        return {'success': result['success'], 'returncode': result['returncode'], 'message': message}

    def get_module_path(self, module_name):
        """
        Chemin du fichier d'un module pour le kernel courant (modinfo -n)
        Returns: Path ou None
        """
        result = CommandRunner.capture(["modinfo", "-n", module_name])
        path = result['stdout'].strip()

        if not result['success'] or not path:
            logger.info("modinfo could not resolve %s: %s", module_name, result['stderr'].strip())
            return None

        logger.debug("Module %s resolved to %s", module_name, path)
        return Path(path)

    def get_module_signer(self, module_path):
        """Signataire d'un module (modinfo -F signer), chaîne vide si non signé"""
        result = CommandRunner.capture(["modinfo", "-F", "signer", str(module_path)])
        return result['stdout'].strip() if result['success'] else ''
