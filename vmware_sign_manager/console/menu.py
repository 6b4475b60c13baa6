"""
Menu principal en mode texte
"""

import logging

from vmware_sign_manager.utils.notifications import notify

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_INTERRUPTED = 130


class MainMenu:
    """Boucle menu : affichage, lecture du choix, exécution, acquittement"""

    EXIT_CHOICE = "5"

    def __init__(self, secureboot_manager, vmware_manager, dialogs, i18n):
        self.secureboot_manager = secureboot_manager
        self.vmware_manager = vmware_manager
        self.dialogs = dialogs
        self.i18n = i18n

        self.actions = {
            "1": ("menu.option_install", self.install_vmware_modules),
            "2": ("menu.option_sign", self.generate_and_sign),
            "3": ("menu.option_verify", self.verify_signatures),
            "4": ("menu.option_mok", self.import_mok_key),
        }
        self.last_choice = None

    def _secureboot_label(self):
        status = self.secureboot_manager.get_secureboot_status()
        if status['error'] == 'NOT_UEFI':
            return self.i18n._("status.not_uefi")
        if status['error']:
            return self.i18n._("status.unknown")
        return self.i18n._("status.enabled" if status['enabled'] else "status.disabled")

    def display(self, secureboot_label):
        """Affiche l'en-tête et les options"""
        _ = self.i18n._
        self.dialogs.show_line()
        self.dialogs.show_title(f"=== {_('app.title')} ===")
        self.dialogs.show_info(_("menu.kernel", version=self.vmware_manager.kernel_version))
        self.dialogs.show_info(_("menu.secureboot", status=secureboot_label))
        self.dialogs.show_line()
        for key, (label, _handler) in self.actions.items():
            self.dialogs.show_line(f"  {key}) {_(label)}")
        self.dialogs.show_line(f"  {self.EXIT_CHOICE}) {_('menu.option_exit')}")
        self.dialogs.show_line()

    def run(self):
        """
        Boucle principale
        Returns: code de sortie du processus
        """
        secureboot_label = self._secureboot_label()

        try:
            while True:
                self.display(secureboot_label)
                choice = self.dialogs.ask(self.i18n._("menu.prompt")).strip()
                self.last_choice = choice
                logger.debug("Menu choice: %r", choice)

                if choice == self.EXIT_CHOICE:
                    self.dialogs.show_info(self.i18n._("menu.goodbye"))
                    return EXIT_OK

                action = self.actions.get(choice)
                if action is None:
                    self.dialogs.show_error(self.i18n._("menu.invalid", choice=choice))
                    continue

                action[1]()
                self.dialogs.ask(self.i18n._("menu.press_enter"))
        except EOFError:
            self.dialogs.show_line()
            return EXIT_OK
        except KeyboardInterrupt:
            self.dialogs.show_line()
            return EXIT_INTERRUPTED

    # ==================== Actions ====================

    def install_vmware_modules(self):
        """Option 1 : vmware-modconfig --console --install-all"""
        _ = self.i18n._
        self.dialogs.show_info(_("install.running", version=self.vmware_manager.kernel_version))
        result = self.vmware_manager.install_all_modules()

        if result['success']:
            self.dialogs.show_success(_("install.success"))
        else:
            self.dialogs.show_error(_("install.failed", error=result['message']))

    def generate_and_sign(self):
        """Option 2 : génération de la clé puis signature de vmmon et vmnet"""
        _ = self.i18n._
        self.dialogs.show_info(_("sign.generating"))
        result = self.secureboot_manager.generate_and_sign()

        key = result['key']
        if not key['success']:
            self.dialogs.show_error(_("sign.key_failed", error=key['error']))
            return

        self.dialogs.show_success(_("sign.key_ok", priv_key=key['priv_key'], der_cert=key['der_cert']))
        for name, module_result in result['results'].items():
            if module_result['success']:
                self.dialogs.show_success(_("sign.module_ok", module=name))
            else:
                self.dialogs.show_error(_("sign.module_failed", module=name, error=module_result['error']))

    def verify_signatures(self):
        """Option 3 : recherche du marqueur de signature dans vmmon et vmnet"""
        _ = self.i18n._
        self.dialogs.show_warning(_("verify.limitation"))
        result = self.secureboot_manager.verify_vmware_modules()

        for name, module_result in result['results'].items():
            if not module_result['success']:
                self.dialogs.show_error(_("verify.error", module=name, error=module_result['error']))
            elif not module_result['signed']:
                self.dialogs.show_error(_("verify.not_signed", module=name, path=module_result['path']))
            else:
                signer = module_result['signer'] or "?"
                self.dialogs.show_success(_("verify.signed", module=name, signer=signer))
                if not module_result['own_key']:
                    self.dialogs.show_warning(_("verify.foreign_signer", module=name, signer=signer))

    def import_mok_key(self):
        """Option 4 : mokutil --import MOK.der"""
        _ = self.i18n._
        self.dialogs.show_info(_("mok.running", cert=self.secureboot_manager.der_cert))
        result = self.secureboot_manager.enroll_mok_key()

        if not result['success']:
            self.dialogs.show_error(_("mok.failed", error=result['message']))
            return

        self.dialogs.show_success(_("mok.success"))
        self.dialogs.show_warning(_("mok.reboot_reminder"))
        notify(_("app.title"), _("mok.notification_body"))
