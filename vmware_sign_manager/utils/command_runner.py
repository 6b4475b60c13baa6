"""
Subprocess runner that mirrors command output to the console and the output log
"""

import codecs
import logging
import os
import subprocess
import sys
from pathlib import Path

logger = logging.getLogger(__name__)


class CommandRunner:
    """Runs external commands, streaming their output"""

    CHUNK_SIZE = 4096

    def __init__(self, log_file, stream=None):
        self.log_file = Path(log_file)
        self.stream = stream

    def _console(self):
        return self.stream if self.stream is not None else sys.stdout

    def run(self, cmd, env_overrides=None):
        """
        Run a command, copying everything it prints to the console and
        appending it to the output log.

        stdin is inherited so interactive tools (mokutil) can prompt.
        Output is forwarded as soon as it is read, not line by line,
        so prompts without a trailing newline are shown.

        Returns: dict with success, returncode, output
        """
        cmd = [str(part) for part in cmd]
        env = None
        if env_overrides:
            env = dict(os.environ)
            env.update(env_overrides)

        logger.info("Running: %s", " ".join(cmd))
        console = self._console()
        decoder = codecs.getincrementaldecoder('utf-8')(errors='replace')
        output = []

        with open(self.log_file, 'a', encoding='utf-8') as log:
            try:
                process = subprocess.Popen(
                    cmd,
                    stdout=subprocess.PIPE,
                    stderr=subprocess.STDOUT,
                    env=env
                )
            except OSError as e:
                message = f"{cmd[0]}: {e.strerror or e}\n"
                logger.info("Failed to launch %s: %s", cmd[0], e)
                self._emit(message, console, log)
                return {'success': False, 'returncode': 127, 'output': message}

            # Popen.__exit__ closes the pipe and reaps the child
            with process:
                try:
                    while True:
                        data = process.stdout.read1(self.CHUNK_SIZE)
                        if not data:
                            break
                        text = decoder.decode(data)
                        if text:
                            self._emit(text, console, log)
                            output.append(text)

                    text = decoder.decode(b'', final=True)
                    if text:
                        self._emit(text, console, log)
                        output.append(text)
                except BaseException:
                    logger.info("Interrupted while running %s, killing it", cmd[0])
                    process.kill()
                    raise

                returncode = process.wait()

        logger.debug("%s exited with status %s", cmd[0], returncode)

        return {
            'success': returncode == 0,
            'returncode': returncode,
            'output': ''.join(output)
        }

    @staticmethod
    def _emit(text, console, log):
        console.write(text)
        console.flush()
        log.write(text)
        log.flush()

    @staticmethod
    def capture(cmd):
        """
        Run a query command without echoing it (modinfo, mokutil --sb-state)
        Returns: dict with success, returncode, stdout, stderr
        """
        cmd = [str(part) for part in cmd]
        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                check=False
            )
        except OSError as e:
            logger.debug("Unable to run %s: %s", cmd[0], e)
            return {'success': False, 'returncode': 127, 'stdout': '', 'stderr': str(e)}

        return {
            'success': result.returncode == 0,
            'returncode': result.returncode,
            'stdout': result.stdout,
            'stderr': result.stderr
        }
