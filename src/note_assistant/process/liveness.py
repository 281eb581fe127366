import asyncio

import logfire

DEFAULT_VERIFY_ARG = "--version"


class LivenessChecker:
    """Runs a candidate executable with a trivial argument to prove it starts."""

    def __init__(self, timeout: float = 5.0, verify_arg: str = DEFAULT_VERIFY_ARG):
        self.timeout = timeout
        self.verify_arg = verify_arg

    async def check(self, path: str, timeout: float = None) -> bool:
        timeout = self.timeout if timeout is None else timeout
        try:
            proc = await asyncio.create_subprocess_exec(
                path,
                self.verify_arg,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.DEVNULL,
            )
        except OSError as e:
            logfire.debug("Liveness spawn failed for {path}: {error}", path=path, error=str(e))
            return False

        try:
            code = await asyncio.wait_for(proc.wait(), timeout=timeout)
        except asyncio.TimeoutError:
            logfire.debug("Liveness check timed out for {path}", path=path)
            try:
                proc.kill()
            except ProcessLookupError:
                pass
            await proc.wait()
            return False

        if code != 0:
            logfire.debug(
                "Liveness check failed for {path} with exit code {code}",
                path=path,
                code=code,
            )
            return False

        logfire.debug("Liveness check passed for {path}", path=path)
        return True
