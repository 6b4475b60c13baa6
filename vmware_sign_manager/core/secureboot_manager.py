"""
Module de gestion SecureBoot
Génération de la clé MOK, signature des modules VMware, vérification et import MOK
"""

import json
import logging
import os
import shutil
from datetime import datetime
from pathlib import Path

from vmware_sign_manager.core.dependency_manager import EXTRA_PATH
from vmware_sign_manager.utils.command_runner import CommandRunner

logger = logging.getLogger(__name__)

# Marqueur ajouté par sign-file à la fin d'un module signé
MODULE_SIG_STRING = b"~Module signature appended~\n"

COMPRESSED_SUFFIXES = ('.xz', '.gz', '.zst')


class SecureBootManager:
    """Classe principale pour gérer SecureBoot"""

    KEY_NAME = "MOK"
    COMMON_NAME = "VMware"
    KEY_DAYS = 36500
    OUTPUT_LOG_NAME = "vmware_sign.log"
    DEBUG_LOG_NAME = "vmware_sign_debug.log"
    HISTORY_NAME = "vmware_sign_history.json"
    HISTORY_LIMIT = 100

    def __init__(self, runner, vmware_manager, base_dir=None):
        if base_dir is None:
            self.base_dir = Path.cwd()
        else:
            self.base_dir = Path(base_dir)

        self.runner = runner
        self.vmware_manager = vmware_manager
        self.priv_key = self.base_dir / f"{self.KEY_NAME}.priv"
        self.der_cert = self.base_dir / f"{self.KEY_NAME}.der"
        self.history_file = self.base_dir / self.HISTORY_NAME

    @property
    def kernel_version(self):
        return self.vmware_manager.kernel_version

    # ==================== Historique ====================

    def _save_history(self, history):
        """Sauvegarde l'historique"""
        with open(self.history_file, 'w') as f:
            json.dump(history, f, indent=2)

    def _load_history(self):
        """Charge l'historique"""
        try:
            with open(self.history_file, 'r') as f:
                history = json.load(f)
        except (OSError, ValueError):
            return []
        return history if isinstance(history, list) else []

    def add_to_history(self, action, details, success=True):
        """Ajoute une entrée à l'historique"""
        history = self._load_history()

        entry = {
            'timestamp': datetime.now().isoformat(),
            'action': action,
            'details': details,
            'success': success
        }

        history.insert(0, entry)
        history = history[:self.HISTORY_LIMIT]
        try:
            self._save_history(history)
        except OSError as e:
            logger.warning("Unable to write history file %s: %s", self.history_file, e)
        return entry

    def get_history(self):
        """Récupère l'historique"""
        return self._load_history()

    # ==================== Détection du statut ====================

    def is_uefi_system(self):
        """Vérifie si le système utilise UEFI"""
        return Path("/sys/firmware/efi").exists()

    def get_secureboot_status(self):
        """
        Récupère le statut de SecureBoot
        Retourne: dict avec enabled (bool), details (str), error
        """
        if not self.is_uefi_system():
            return {
                'enabled': False,
                'details': 'System is not using UEFI',
                'error': 'NOT_UEFI'
            }

        status = {
            'enabled': False,
            'details': '',
            'error': None
        }

        # Méthode 1: mokutil (préféré)
        result = CommandRunner.capture(["mokutil", "--sb-state"])
        if result['success']:
            output = result['stdout'].strip()
            if "SecureBoot enabled" in output:
                status['enabled'] = True
                status['details'] = "SecureBoot is enabled"
            elif "SecureBoot disabled" in output:
                status['details'] = "SecureBoot is disabled"
            else:
                status['details'] = output
            return status

        # Méthode 2: lire directement depuis efivars
        secureboot_file = Path("/sys/firmware/efi/efivars/SecureBoot-8be4df61-93ca-11d2-aa0d-00e098032b8c")
        try:
            data = secureboot_file.read_bytes()
        except OSError:
            data = b''

        # Le dernier octet indique le statut (0x00 = disabled, 0x01 = enabled)
        if data:
            status['enabled'] = data[-1] == 1
            status['details'] = f"SecureBoot is {'enabled' if status['enabled'] else 'disabled'}"
            return status

        status['details'] = "Unable to determine SecureBoot status"
        status['error'] = "UNABLE_TO_DETECT"
        return status

    # ==================== Génération de clés ====================

    def generate_signing_key(self):
        """
        Génère la paire de clés MOK (RSA 2048, certificat DER auto-signé)
        Les fichiers existants sont écrasés
        """
        logger.info("Generating signing key %s / %s", self.priv_key, self.der_cert)

        result = self.runner.run([
            "openssl", "req", "-new", "-x509",
            "-newkey", "rsa:2048",
            "-keyout", self.priv_key,
            "-outform", "DER",
            "-out", self.der_cert,
            "-nodes",
            "-days", str(self.KEY_DAYS),
            "-subj", f"/CN={self.COMMON_NAME}/"
        ])

        success = result['success'] and self.priv_key.exists() and self.der_cert.exists()

        self.add_to_history(
            'generate_key',
            {'priv_key': str(self.priv_key), 'der_cert': str(self.der_cert)},
            success=success
        )

        if not success:
            return {
                'success': False,
                'error': f'Failed to generate key (openssl exit status {result["returncode"]})'
            }

        return {
            'success': True,
            'priv_key': self.priv_key,
            'der_cert': self.der_cert,
            'message': 'Key pair generated successfully'
        }

    # ==================== Signature des modules ====================

    def find_sign_file_tool(self):
        """Trouve l'outil sign-file du kernel"""
        kernel_version = self.kernel_version
        kernel_major_minor = '.'.join(kernel_version.split('.')[:2])

        possible_locations = [
            # Ubuntu/Debian - headers actuels
            Path("/usr/src/linux-headers-" + kernel_version) / "scripts" / "sign-file",
            # Module build symlink
            Path("/lib/modules") / kernel_version / "build" / "scripts" / "sign-file",
            # Ubuntu - kbuild-tools
            Path("/usr/lib/linux-kbuild-" + kernel_major_minor) / "scripts" / "sign-file",
            # Debian - kbuild-tools
            Path("/usr/lib/linux-kbuild-" + kernel_version.split('-')[0]) / "scripts" / "sign-file",
        ]

        for location in possible_locations:
            if location.is_file():
                return location

        extended_path = os.environ.get('PATH', '') + EXTRA_PATH
        found = shutil.which("sign-file", path=extended_path)
        if found:
            return Path(found)

        return None

    def sign_module(self, module_path, sign_file=None):
        """Signe un module kernel avec la clé MOK"""
        module = Path(module_path)

        if not module.exists():
            return {'success': False, 'error': f'Module file not found: {module}'}
        if module.suffix in COMPRESSED_SUFFIXES:
            return {'success': False, 'error': f'Compressed modules are not supported: {module}'}
        if not self.priv_key.exists() or not self.der_cert.exists():
            return {'success': False, 'error': 'MOK key not found. Generate a key first.'}

        if sign_file is None:
            sign_file = self.find_sign_file_tool()
        if sign_file is None:
            return {
                'success': False,
                'error': f'sign-file tool not found (install linux-headers-{self.kernel_version})'
            }

        result = self.runner.run([
            sign_file, "sha256", self.priv_key, self.der_cert, module
        ])

        if result['success']:
            return {'success': True, 'message': f'Module signed successfully: {module.name}'}

        return {
            'success': False,
            'error': f'sign-file failed for {module.name} (exit status {result["returncode"]})'
        }

    def sign_vmware_modules(self):
        """
        Signe vmmon puis vmnet
        Returns: dict avec success, results (nom du module -> résultat)
        """
        results = {}
        sign_file = self.find_sign_file_tool()
        logger.debug("sign-file tool: %s", sign_file)

        if sign_file is None:
            error = f'sign-file tool not found (install linux-headers-{self.kernel_version})'
            logger.info(error)
            results = {name: {'success': False, 'error': error}
                       for name in self.vmware_manager.VMWARE_MODULES}
            self.add_to_history('sign_modules', {'error': error}, success=False)
            return {'success': False, 'results': results}

        for name in self.vmware_manager.VMWARE_MODULES:
            module_path = self.vmware_manager.get_module_path(name)
            if module_path is None:
                results[name] = {'success': False, 'error': f'Unable to locate module {name} (modinfo -n)'}
                continue

            results[name] = self.sign_module(module_path, sign_file=sign_file)

        success = all(r['success'] for r in results.values())
        logger.info("Module signing completed: %s", {n: r['success'] for n, r in results.items()})

        self.add_to_history(
            'sign_modules',
            {name: r.get('message') or r.get('error') for name, r in results.items()},
            success=success
        )

        return {'success': success, 'results': results}

    def generate_and_sign(self):
        """Génère la clé puis signe les modules VMware"""
        key_result = self.generate_signing_key()
        if not key_result['success']:
            return {'success': False, 'key': key_result, 'results': {}}

        sign_result = self.sign_vmware_modules()
        return {'success': sign_result['success'], 'key': key_result, 'results': sign_result['results']}

    # ==================== Vérification des modules ====================

    def check_module_signature(self, module_path):
        """
        Vérifie la présence du marqueur de signature en fin de fichier
        Ce test prouve qu'une signature est présente, pas qu'elle est valide
        """
        module = Path(module_path)

        if module.suffix in COMPRESSED_SUFFIXES:
            return {'success': False, 'signed': False, 'error': f'Compressed modules are not supported: {module}'}

        try:
            with open(module, 'rb') as f:
                f.seek(0, os.SEEK_END)
                size = f.tell()
                if size < len(MODULE_SIG_STRING):
                    return {'success': True, 'signed': False, 'signer': ''}
                f.seek(size - len(MODULE_SIG_STRING))
                trailer = f.read()
        except OSError as e:
            return {'success': False, 'signed': False, 'error': f'Unable to read {module}: {e}'}

        signed = trailer == MODULE_SIG_STRING
        signer = self.vmware_manager.get_module_signer(module) if signed else ''

        return {'success': True, 'signed': signed, 'signer': signer}

    def verify_vmware_modules(self):
        """
        Vérifie vmmon et vmnet
        Returns: dict avec success, results (nom du module -> résultat)
        """
        logger.info("Signature check only detects the appended signature marker; "
                    "it does not validate the signature")
        results = {}

        for name in self.vmware_manager.VMWARE_MODULES:
            module_path = self.vmware_manager.get_module_path(name)
            if module_path is None:
                results[name] = {'success': False, 'signed': False,
                                 'error': f'Unable to locate module {name} (modinfo -n)'}
                continue

            result = self.check_module_signature(module_path)
            result['path'] = str(module_path)
            result['own_key'] = result.get('signer') == self.COMMON_NAME
            results[name] = result

        success = all(r['success'] and r['signed'] for r in results.values())
        self.add_to_history(
            'verify_modules',
            {name: bool(r.get('signed')) for name, r in results.items()},
            success=success
        )

        return {'success': success, 'results': results}

    # ==================== Enrollment MOK ====================

    def enroll_mok_key(self):
        """
        Importe le certificat MOK pour enrollment au prochain redémarrage
        mokutil demande un mot de passe temporaire sur le terminal
        Returns: dict avec success, message, needs_reboot
        """
        if not self.der_cert.exists():
            return {
                'success': False,
                'message': 'MOK key not found. Generate a key first.',
                'needs_reboot': False
            }

        result = self.runner.run(["mokutil", "--import", self.der_cert])

        self.add_to_history(
            'mok_import',
            {'der_cert': str(self.der_cert), 'returncode': result['returncode']},
            success=result['success']
        )

        if result['success']:
            return {
                'success': True,
                'message': 'MOK key imported successfully. Reboot required.',
                'needs_reboot': True
            }

        return {
            'success': False,
            'message': f'Failed to import MOK key (mokutil exit status {result["returncode"]})',
            'needs_reboot': False
        }
