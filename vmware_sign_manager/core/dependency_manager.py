"""
Module de vérification préalable
Droits superutilisateur et dépendances système (installées via apt-get)
"""

import logging
import os
import shutil

logger = logging.getLogger(__name__)

EXTRA_PATH = ':/sbin:/usr/sbin:/usr/local/sbin'


class DependencyManager:
    """Vérifie les droits et installe les outils manquants"""

    # commande -> paquet Debian/Ubuntu qui la fournit
    REQUIRED_COMMANDS = {
        'openssl': 'openssl',
        'mokutil': 'mokutil',
        'modinfo': 'kmod',
    }

    def __init__(self, runner):
        self.runner = runner

    def is_root(self):
        """Vérifie que le processus tourne en tant que root"""
        return os.geteuid() == 0

    def _check_command(self, command):
        """Vérifie si une commande est disponible"""
        # Étendre le PATH pour inclure /sbin et /usr/sbin (pour Debian)
        extended_path = os.environ.get('PATH', '') + EXTRA_PATH
        return shutil.which(command, path=extended_path) is not None

    def check_dependencies(self):
        """Vérifie que les dépendances nécessaires sont installées"""
        deps = {name: self._check_command(name) for name in self.REQUIRED_COMMANDS}

        return {
            'all_installed': all(deps.values()),
            'dependencies': deps,
            'missing': [name for name, installed in deps.items() if not installed]
        }

    def install_package(self, package):
        """
        Installe un paquet avec apt-get (sortie affichée et journalisée)
        Returns: dict avec success, message
        """
        logger.info("Installing package %s", package)
        result = self.runner.run(
            ["apt-get", "install", "-y", package],
            env_overrides={'DEBIAN_FRONTEND': 'noninteractive'}
        )

        if result['success']:
            return {'success': True, 'message': f'{package} installed'}

        logger.info("apt-get install %s failed with status %s", package, result['returncode'])
        return {
            'success': False,
            'message': f'apt-get install {package} failed (exit status {result["returncode"]})'
        }

    def ensure_dependencies(self, confirm):
        """
        Propose l'installation de chaque outil manquant
        Args:
            confirm: fonction (command, package) -> bool, demande à l'utilisateur
        Returns: dict avec success, message, installed, refused (commande refusée ou None)
        """
        installed = []

        for command in self.check_dependencies()['missing']:
            package = self.REQUIRED_COMMANDS[command]
            logger.info("Missing dependency: %s (package %s)", command, package)

            if not confirm(command, package):
                logger.info("Installation of %s refused", package)
                return {
                    'success': False,
                    'message': f'{command} is required',
                    'installed': installed,
                    'refused': command
                }

            result = self.install_package(package)
            if not result['success']:
                return {
                    'success': False,
                    'message': result['message'],
                    'installed': installed,
                    'refused': None
                }

            installed.append(package)

        return {
            'success': True,
            'message': 'All dependencies are installed',
            'installed': installed,
            'refused': None
        }
