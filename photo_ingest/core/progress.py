"""
Rich 進度條模組

批次壓縮時顯示目前檔案與成功/失敗計數
"""

from rich.console import Console
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeElapsedColumn,
)


class RichProgressBar:
    """
    批次壓縮進度條

    可直接作為 ImageProcessor 的 progress_callback::

        with RichProgressBar(total=len(paths)) as bar:
            ImageProcessor(pipeline, progress_callback=bar).process_files(paths)
    """

    def __init__(self, total: int, *, console: Console | None = None) -> None:
        """
        Args:
            total: 檔案總數
            console: 輸出目標（預設為 rich 的全域 console）
        """
        self._progress = Progress(
            SpinnerColumn(),
            TextColumn("[bold blue]{task.description}"),
            BarColumn(bar_width=30),
            MofNCompleteColumn(),
            TextColumn("[green]{task.fields[ok]} ok"),
            TextColumn("[red]{task.fields[failed]} failed"),
            TimeElapsedColumn(),
            console=console,
        )
        self._task_id = self._progress.add_task("Compressing", total=total, ok=0, failed=0)
        self._failed_names: list[str] = []
        self._success = 0

    def __enter__(self) -> "RichProgressBar":
        self._progress.start()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        self._progress.stop()

    def __call__(self, completed: int, total: int, name: str, success: bool) -> None:
        self._record(name, success)
        self._progress.update(self._task_id, completed=completed, total=total, **self._fields(name))

    def update(self, filename: str, *, success: bool) -> None:
        """
        前進一格並記錄結果

        Args:
            filename: 剛處理完的檔案名稱
            success: 處理是否成功
        """
        self._record(filename, success)
        self._progress.update(self._task_id, advance=1, **self._fields(filename))

    def _record(self, name: str, success: bool) -> None:
        if success:
            self._success += 1
        else:
            self._failed_names.append(name)

    def _fields(self, name: str) -> dict[str, object]:
        return {"description": name, "ok": self._success, "failed": self.failed_count}

    @property
    def success_count(self) -> int:
        """成功數量"""
        return self._success

    @property
    def failed_count(self) -> int:
        """失敗數量"""
        return len(self._failed_names)

    @property
    def failed_names(self) -> list[str]:
        """失敗的檔案名稱，依回報順序"""
        return list(self._failed_names)
