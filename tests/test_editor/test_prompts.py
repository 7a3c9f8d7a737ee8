"""
Test the confirmation and notification adapters.
"""

from unittest.mock import MagicMock, patch

import pytest

from editor.prompts import LogNotifier, StaticConfirm, TkPrompt


def test_static_confirm_records_questions():
    """StaticConfirm answers and remembers every question."""
    confirm = StaticConfirm(False)

    assert confirm.confirm("Unsaved Changes", "Discard them?") is False
    assert confirm.asked == [("Unsaved Changes", "Discard them?")]


def test_log_notifier(caplog):
    """LogNotifier logs and keeps notifications."""
    notifier = LogNotifier()
    notifier.error("Load Error", "bad file")
    notifier.info("Saved", "merchant.json")

    assert notifier.errors == [("Load Error", "bad file")]
    assert notifier.infos == [("Saved", "merchant.json")]
    assert "Load Error: bad file" in caplog.text


@pytest.fixture
def tk_root():
    """Patch out the hidden Tk window."""
    root = MagicMock()
    with patch("editor.prompts._get_tk_root", return_value=root):
        yield root


def test_tk_confirm(tk_root):
    """TkPrompt asks through a yes/no box."""
    pytest.importorskip("tkinter")
    with patch("tkinter.messagebox.askyesno", return_value=True) as askyesno:
        assert TkPrompt().confirm("Save With Warnings", "Save anyway?")

    askyesno.assert_called_once_with("Save With Warnings", "Save anyway?")
    tk_root.destroy.assert_called_once()


def test_tk_error_destroys_root_on_failure(tk_root):
    """The hidden root is destroyed even when the box fails."""
    pytest.importorskip("tkinter")
    with patch("tkinter.messagebox.showerror", side_effect=RuntimeError("no display")):
        with pytest.raises(RuntimeError):
            TkPrompt().error("Save Error", "disk full")

    tk_root.destroy.assert_called_once()


def test_tk_info(tk_root):
    """TkPrompt shows info boxes."""
    pytest.importorskip("tkinter")
    with patch("tkinter.messagebox.showinfo") as showinfo:
        TkPrompt().info("Saved", "merchant.json")

    showinfo.assert_called_once_with("Saved", "merchant.json")
