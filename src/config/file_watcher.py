import hashlib
import logging
import threading
from collections.abc import Callable
from pathlib import Path

logger = logging.getLogger(__name__)


class FileWatcher:
    """
    파일 내용의 해시를 주기적으로 비교하여 변경 시 콜백을 호출한다.

    수정 시각 대신 내용 해시를 사용하므로 편집기나 파일 시스템에 관계없이 동작한다.
    """

    def __init__(self, poll_interval: float = 1.0):
        self.poll_interval = poll_interval
        self._watched_files: dict[Path, str] = {}  # path -> hash
        self._callbacks: dict[Path, Callable[[Path], None]] = {}
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._lock = threading.Lock()

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def watch(self, file_path: str, callback: Callable[[Path], None]):
        """
        파일 감시를 시작한다. 감시 스레드가 없으면 함께 시작한다.

        Args:
            file_path: 감시할 파일 경로
            callback: 변경 시 호출할 함수 (변경된 경로를 인자로 받음)
        """
        path = Path(file_path).resolve()

        with self._lock:
            self._watched_files[path] = self._get_file_hash(path)
            self._callbacks[path] = callback

        self.start()

    def unwatch(self, file_path: str):
        path = Path(file_path).resolve()

        with self._lock:
            self._watched_files.pop(path, None)
            self._callbacks.pop(path, None)

    def start(self):
        if self.running:
            return

        self._stop_event.clear()
        self._thread = threading.Thread(target=self._watch_loop, name="config-file-watcher", daemon=True)
        self._thread.start()

    def stop(self):
        self._stop_event.set()
        if self._thread:
            self._thread.join(timeout=5.0)
            self._thread = None

    def _watch_loop(self):
        while not self._stop_event.is_set():
            self.check_files()
            self._stop_event.wait(self.poll_interval)

    def check_files(self):
        """감시 중인 파일을 한 번 확인하고 변경된 파일의 콜백을 호출한다."""
        with self._lock:
            files_to_check = list(self._watched_files.items())

        for path, old_hash in files_to_check:
            new_hash = self._get_file_hash(path)
            if new_hash == old_hash:
                continue

            with self._lock:
                self._watched_files[path] = new_hash
                callback = self._callbacks.get(path)

            if callback:
                try:
                    callback(path)
                except Exception:
                    logger.exception(f"Error in file change callback for {path}")

    @staticmethod
    def _get_file_hash(path: Path) -> str:
        """파일 내용의 MD5 해시. 파일이 없으면 빈 문자열"""
        try:
            with open(path, "rb") as f:
                hasher = hashlib.md5()
                for chunk in iter(lambda: f.read(8192), b""):
                    hasher.update(chunk)
        except FileNotFoundError:
            return ""

        return hasher.hexdigest()
