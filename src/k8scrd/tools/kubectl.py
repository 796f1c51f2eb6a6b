from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
import os
from pathlib import Path
import shlex
import shutil
import subprocess
from typing import IO

from loguru import logger

from k8scrd.diagnostics import ProviderError
from k8scrd.provider.config import ProviderConfiguration

KUBECTL_ENV = "K8S_KUBECTL"
""" Environment variable that can point to the `kubectl` executable to use. """


@dataclass
class ExecutableNotFound(ProviderError):
    executable: str

    kind = "ExecutableNotFound"
    summary = "Kubectl executable not found."

    def __str__(self) -> str:
        return (
            f"The kubectl executable '{self.executable}' could not be found. Install kubectl into the PATH, or point "
            f"the `kubectl` option or the {KUBECTL_ENV} environment variable to the executable."
        )


@dataclass
class ExecError(ProviderError):
    """
    Raised when the `kubectl apply` command could not be run or did not succeed.
    """

    message: str
    returncode: int | None = None
    output: bytes = b""

    kind = "ExecError"
    summary = "Error executing external kubectl command."

    def __str__(self) -> str:
        message = f"The kubectl apply command failed: {self.message}"
        if self.returncode is not None:
            message += f" (exit status {self.returncode})"
        if self.output:
            message += f"\n{self.output.decode('utf-8', errors='replace').rstrip()}"
        return message


def auth_args(configuration: ProviderConfiguration) -> list[str]:
    """
    Return the authentication arguments for `kubectl`. A bearer token takes precedence over basic authentication.
    """

    if configuration.token:
        return ["--token", configuration.token]
    if configuration.username and configuration.password:
        return ["--username", configuration.username, "--password", configuration.password]
    raise ExecError("no usable credentials in the provider configuration (need a token, or a username and password)")


def _mask_secrets(command: list[str]) -> list[str]:
    masked = list(command)
    for index, arg in enumerate(command[:-1]):
        if arg in ("--token", "--password"):
            masked[index + 1] = "***"
    return masked


class Kubectl:
    """
    Wrapper for running `kubectl apply` against an API server.
    """

    def __init__(self, executable: str | Path | None = None) -> None:
        self.executable = str(executable) if executable is not None else os.getenv(KUBECTL_ENV, "kubectl")
        self._path: str | None = None

    def locate(self) -> str:
        """
        Resolve the `kubectl` executable, either an explicit path or by looking it up in the `PATH`.

        Raises:
            ExecutableNotFound: If the executable does not exist.
        """

        if self._path is None:
            path = shutil.which(self.executable)
            if path is None:
                raise ExecutableNotFound(self.executable)
            logger.debug("Using kubectl executable '{}'", path)
            self._path = path
        return self._path

    def apply(self, configuration: ProviderConfiguration, document: str) -> bytes:
        """
        Apply the given document to the cluster. The document is written to the standard input of `kubectl` by a
        separate thread while the combined standard output and error is read until the process exits.

        Returns:
            The combined output of the command. It is not interpreted any further.
        Raises:
            ExecutableNotFound: If the executable does not exist.
            ExecError: If the command could not be started, failed to receive its input or exited with a non-zero
                status.
        """

        command = [
            self.locate(),
            "apply",
            "--server",
            configuration.host,
            *auth_args(configuration),
            "--output",
            "json",
        ]
        logger.debug(
            "Applying document with command: $ {command}",
            command=" ".join(map(shlex.quote, _mask_secrets(command))),
        )

        try:
            process = subprocess.Popen(command, stdin=subprocess.PIPE, stdout=subprocess.PIPE, stderr=subprocess.STDOUT)
        except OSError as exc:
            raise ExecError(f"could not start '{command[0]}': {exc}") from exc

        if process.stdin is None or process.stdout is None:
            process.kill()
            process.wait()
            raise ExecError("could not obtain the standard input of the process")

        with ThreadPoolExecutor(max_workers=1, thread_name_prefix="kubectl-stdin") as executor:
            writer = executor.submit(_write_input, process.stdin, document)
            output = process.stdout.read()
            process.stdout.close()
            returncode = process.wait()
            write_error = writer.exception()

        logger.debug("kubectl apply's output: {}", output.decode("utf-8", errors="replace"))

        if returncode != 0:
            raise ExecError("the command exited with an error", returncode, output)
        if write_error is not None:
            raise ExecError(f"could not write the document to the standard input: {write_error}", returncode, output)

        return output


def _write_input(stdin: IO[bytes], document: str) -> None:
    with stdin:
        stdin.write(document.encode("utf-8"))
