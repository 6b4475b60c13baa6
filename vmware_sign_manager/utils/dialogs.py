"""
Dialogues console réutilisables (texte coloré avec colorama)
"""

import sys

from colorama import Fore, Style


class ConsoleDialogs:
    """Classe helper pour les dialogues en mode texte"""

    def __init__(self, stream=None, input_func=input):
        self.stream = stream
        self.input_func = input_func

    def _write(self, text):
        stream = self.stream if self.stream is not None else sys.stdout
        stream.write(text + Style.RESET_ALL + "\n")
        stream.flush()

    def show_title(self, title):
        """Affiche un titre"""
        self._write(f"{Style.BRIGHT}{title}")

    def show_line(self, message=""):
        """Affiche une ligne sans couleur"""
        self._write(message)

    def show_info(self, message):
        """Affiche une information"""
        self._write(f"{Fore.CYAN}{message}")

    def show_success(self, message):
        """Affiche un succès"""
        self._write(f"{Fore.GREEN}✓ {message}")

    def show_warning(self, message):
        """Affiche un avertissement"""
        self._write(f"{Fore.YELLOW}⚠️  {message}")

    def show_error(self, message):
        """Affiche une erreur"""
        self._write(f"{Fore.RED}✗ {message}")

    def ask(self, prompt):
        """
        Lit une ligne sur l'entrée standard
        Lève EOFError si l'entrée est fermée
        """
        return self.input_func(f"{Style.BRIGHT}{prompt}{Style.RESET_ALL}")

    def show_question(self, message, yes_answers=("y", "yes")):
        """Pose une question Oui/Non (Non par défaut, et en fin d'entrée)"""
        try:
            answer = self.ask(f"{Fore.YELLOW}{message} [y/N] ")
        except EOFError:
            return False
        return answer.strip().lower() in yes_answers
