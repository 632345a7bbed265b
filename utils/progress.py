from typing import Optional
import logging
from tqdm import tqdm
import time


class ProgressMonitor:
    def __init__(self, total: int, desc: str = "Processing",
                 logger: Optional[logging.Logger] = None,
                 log_every: int = 4, disable: Optional[bool] = None):
        """Progress bar over a fixed number of fits, with periodic log lines"""
        self.logger = logger or logging.getLogger('progress')
        # disable=None lets tqdm hide itself when stderr is not a terminal
        self.pbar = tqdm(total=total, desc=desc, disable=disable, leave=False)
        self.total = total
        self.current = 0
        self.log_every = max(1, log_every)
        self.start_time = time.time()
        self.description = desc

    def update(self, n: int = 1, status: str = ""):
        """Advance by n steps with optional status message"""
        self.current += n
        self.pbar.update(n)

        if status:
            self.pbar.set_postfix_str(status, refresh=False)
            self.logger.debug(f"{self.description}: {status}")

        if self.current % self.log_every == 0 or self.current == self.total:
            elapsed = time.time() - self.start_time
            progress = self.current / self.total if self.total else 1.0
            eta = (elapsed / progress) * (1 - progress) if progress > 0 else 0

            self.logger.info(
                f"Progress: {self.current}/{self.total} "
                f"({progress*100:.1f}%) - "
                f"Elapsed: {elapsed:.1f}s - "
                f"ETA: {eta:.1f}s"
            )

    def close(self):
        """Close progress bar and log total time"""
        self.pbar.close()
        total_time = time.time() - self.start_time
        self.logger.info(
            f"Completed {self.description} in {total_time:.1f} seconds"
        )
