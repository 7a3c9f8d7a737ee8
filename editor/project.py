"""
Persistence for the dialog tree editor.

TreeRepository maps tree names to JSON files in a content directory.
PersistenceGateway moves trees between the repository (or raw bytes,
or a dialog script) and the TreeStore, enforcing the editor's rules:

- Loading over unsaved changes asks for confirmation first
- A failed load leaves the current tree untouched
- Save and export are refused while validation errors exist, and need
  confirmation while warnings exist
- Saving clears the dirty flag; exporting does not
- Only one load runs at a time; a second one is rejected

Documents are always the canonical tree JSON, without session data.
"""

from __future__ import annotations

import logging
import os
import tempfile
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from dialogs.codec import DocumentError, tree_from_json, tree_to_json
from dialogs.model import DialogTree, new_tree_template
from dialogs.parser import DialogParser
from dialogs.validator import ValidationReport
from editor.errors import (
    InvalidTreeNameError,
    LoadInProgressError,
    NoActiveTreeError,
    PersistenceError,
    TreeNotFoundError,
    TreeParseError,
    TreeWriteError,
)
from editor.events import EditorEvent
from editor.prompts import ConfirmationPort, LogNotifier, NotificationSink, StaticConfirm
from editor.store import TreeStore
from runtime.config import EditorConfig

logger = logging.getLogger(__name__)


def write_text_atomic(path: Path, text: str) -> None:
    """
    Write text so readers see either the old file or the new one.

    Raises:
        TreeWriteError: On any I/O failure; the old file is left intact
    """
    tmp_name = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            'w',
            encoding='utf-8',
            dir=path.parent,
            prefix=f".{path.stem}-",
            suffix=".tmp",
            delete=False,
        ) as f:
            tmp_name = f.name
            f.write(text)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, path)
    except OSError as e:
        if tmp_name and os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise TreeWriteError(f"Failed to write {path}: {e}") from e


class TreeRepository:
    """
    Named dialog trees stored as <content_dir>/<name>.json.
    """

    SUFFIX = ".json"

    def __init__(self, content_dir: str | Path):
        self.content_dir = Path(content_dir)

    def list_trees(self) -> list[str]:
        """Names of all stored trees, sorted."""
        if not self.content_dir.is_dir():
            return []
        return sorted(p.stem for p in self.content_dir.glob(f"*{self.SUFFIX}") if p.is_file())

    def path_for(self, name: str) -> Path:
        """
        File path for a tree name.

        Raises:
            InvalidTreeNameError: For empty names or names that could
                escape the content directory
        """
        if not name or '/' in name or '\\' in name or '..' in name:
            raise InvalidTreeNameError(name)
        return self.content_dir / f"{name}{self.SUFFIX}"

    def exists(self, name: str) -> bool:
        return self.path_for(name).is_file()

    def read(self, name: str) -> bytes:
        path = self.path_for(name)
        if not path.is_file():
            raise TreeNotFoundError(name)
        try:
            return path.read_bytes()
        except OSError as e:
            raise PersistenceError(f"Failed to read {path}: {e}") from e

    def write(self, name: str, text: str) -> Path:
        path = self.path_for(name)
        write_text_atomic(path, text)
        return path


@dataclass
class PersistResult:
    """
    Outcome of a save or export.

    Attributes:
        success: Whether the document was produced (and written, if asked)
        message: Text suitable for a status bar
        document: Canonical JSON, when it was produced
        path: File written, if any
        report: Validation report that gated the operation
    """
    success: bool
    message: str
    document: Optional[str] = None
    path: Optional[Path] = None
    report: Optional[ValidationReport] = None


class PersistenceGateway:
    """
    Loads trees into a TreeStore and saves/exports them back out.

    Usage:
        gateway = PersistenceGateway(store, TreeRepository("content/dialog-trees"),
                                     confirm=TkPrompt(), notifier=TkPrompt())
        gateway.load_named("merchant_intro")
        ...
        result = gateway.save()
    """

    def __init__(
        self,
        store: TreeStore,
        repository: TreeRepository,
        confirm: Optional[ConfirmationPort] = None,
        notifier: Optional[NotificationSink] = None,
        config: Optional[EditorConfig] = None,
    ):
        self.store = store
        self.repository = repository
        self.confirm = confirm or StaticConfirm(True)
        self.notifier = notifier or LogNotifier()
        self.config = config or store.config
        self.events = store.events
        self._parser = DialogParser()
        self._load_lock = threading.Lock()

    @classmethod
    def from_config(
        cls,
        store: TreeStore,
        config: EditorConfig,
        confirm: Optional[ConfirmationPort] = None,
        notifier: Optional[NotificationSink] = None,
    ) -> PersistenceGateway:
        return cls(store, TreeRepository(config.content_dir), confirm, notifier, config)

    def list_trees(self) -> list[str]:
        return self.repository.list_trees()

    @property
    def is_loading(self) -> bool:
        return self._load_lock.locked()

    # -------------------------------------------------------------------------
    # Loading
    # -------------------------------------------------------------------------

    def load_named(self, name: str) -> bool:
        """Load a stored tree by name. Returns True if the tree was replaced."""
        return self._load(lambda: self._parse_json(self.repository.read(name)), name, name)

    def load_bytes(self, data: bytes | str, name: Optional[str] = None) -> bool:
        """Load an uploaded document. name becomes the save target, if given."""
        label = name or "uploaded file"
        return self._load(lambda: self._parse_json(data), name, label)

    def load_script(self, text: str, name: Optional[str] = None) -> bool:
        """Import a dialog script (see dialogs.parser)."""
        label = name or "dialog script"
        return self._load(lambda: self._parse_script(text, name), None, label)

    def create_new(self) -> bool:
        """Replace the current tree with a blank one."""
        return self._load(new_tree_template, None, "new tree")

    def _load(
        self,
        produce: Callable[[], DialogTree],
        source_name: Optional[str],
        label: str,
    ) -> bool:
        if not self._load_lock.acquire(blocking=False):
            self._report_load_failure(label, LoadInProgressError())
            return False

        try:
            if self.store.is_dirty and not self.confirm.confirm(
                "Unsaved Changes",
                "The current dialog tree has unsaved changes. Discard them?",
            ):
                logger.info("Load of %s cancelled; unsaved changes kept", label)
                return False

            try:
                tree = produce()
            except PersistenceError as e:
                self._report_load_failure(label, e)
                return False

            self.store.load_dialog_tree(tree, source_name=source_name)
            report = self.store.validation()
            if not report.is_clean:
                logger.warning('Loaded "%s" with %s', tree.id, report.summary())
            return True
        finally:
            self._load_lock.release()

    def _parse_json(self, data: bytes | str) -> DialogTree:
        try:
            return tree_from_json(data)
        except DocumentError as e:
            raise TreeParseError(str(e)) from e

    def _parse_script(self, text: str, name: Optional[str]) -> DialogTree:
        try:
            return self._parser.parse_string(text, default_id=name or "parsed")
        except DocumentError as e:
            raise TreeParseError(str(e)) from e

    def _report_load_failure(self, label: str, error: PersistenceError) -> None:
        logger.error("Failed to load %s: %s", label, error)
        self.notifier.error("Load Error", f"Failed to load {label}:\n{error}")
        self.events.publish(EditorEvent.LOAD_FAILED, name=label, error=str(error))

    # -------------------------------------------------------------------------
    # Saving and exporting
    # -------------------------------------------------------------------------

    def save(self, name: Optional[str] = None) -> PersistResult:
        """
        Write the tree back to the repository.

        The target is name, else the name the tree was loaded from, else
        the tree id. On success the session is clean.
        """
        gated = self._gate("Save", EditorEvent.SAVE_FAILED)
        if isinstance(gated, PersistResult):
            return gated
        tree, report = gated

        target = name or self.store.session.source_name or tree.id
        document = tree_to_json(tree, indent=self.config.json_indent)
        try:
            path = self.repository.write(target, document)
        except PersistenceError as e:
            logger.error('Failed to save "%s": %s', target, e)
            self.notifier.error("Save Error", f"Failed to save {target}:\n{e}")
            self.events.publish(EditorEvent.SAVE_FAILED, name=target, error=str(e))
            return PersistResult(False, str(e), document=document, report=report)

        self.store.mark_clean(source_name=target)
        message = f"Saved {path.name}"
        logger.info(message)
        self.events.publish(EditorEvent.TREE_SAVED, name=target, path=path)
        return PersistResult(True, message, document=document, path=path, report=report)

    def export(self, path: Optional[str | Path] = None) -> PersistResult:
        """
        Produce a standalone copy of the tree, optionally writing it to path.

        Exporting does not touch the dirty flag.
        """
        gated = self._gate("Export", EditorEvent.EXPORT_FAILED)
        if isinstance(gated, PersistResult):
            return gated
        tree, report = gated

        document = tree_to_json(tree, indent=self.config.json_indent)
        written = None
        if path is not None:
            written = Path(path)
            try:
                write_text_atomic(written, document)
            except PersistenceError as e:
                logger.error("Failed to export to %s: %s", written, e)
                self.notifier.error("Export Error", f"Failed to export:\n{e}")
                self.events.publish(EditorEvent.EXPORT_FAILED, path=written, error=str(e))
                return PersistResult(False, str(e), document=document, report=report)

        message = f"Exported {tree.id}" + (f" to {written}" if written else "")
        logger.info(message)
        self.events.publish(EditorEvent.TREE_EXPORTED, tree_id=tree.id, path=written)
        return PersistResult(True, message, document=document, path=written, report=report)

    def _gate(
        self,
        action: str,
        failure_event: EditorEvent,
    ) -> PersistResult | tuple[DialogTree, ValidationReport]:
        """Validate before persisting; returns a failed result or (snapshot, report)."""
        try:
            tree = self.store.snapshot()
        except NoActiveTreeError as e:
            return PersistResult(False, str(e))

        report = self.store.validate_now()

        if report.has_errors:
            message = (
                f'{action} refused: "{tree.id}" has {len(report.errors)} '
                f"validation error(s)"
            )
            logger.warning(message)
            self.notifier.error(f"{action} Refused", message)
            self.events.publish(failure_event, tree_id=tree.id, error=message, report=report)
            return PersistResult(False, message, report=report)

        if report.has_warnings and not self.confirm.confirm(
            f"{action} With Warnings",
            f'"{tree.id}" has {len(report.warnings)} warning(s). {action} anyway?',
        ):
            logger.info("%s of %s cancelled at warnings prompt", action, tree.id)
            return PersistResult(False, f"{action} cancelled", report=report)

        return tree, report
