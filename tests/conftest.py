# Minimal conftest providing a fallback 'qtbot' fixture if pytest-qt is not installed.
# Qt tests run on the offscreen platform; without PyQt6 they are skipped.

import os
import sys

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

try:  # If pytest-qt present, do nothing (its fixture will be used)
    import pytestqt  # type: ignore  # noqa: F401
except Exception:  # pragma: no cover
    try:
        from PyQt6.QtWidgets import QApplication
    except Exception:  # pragma: no cover
        QApplication = None  # type: ignore

    @pytest.fixture
    def qtbot():  # type: ignore
        if QApplication is None:
            pytest.skip("PyQt6 not available")
        QApplication.instance() or QApplication(sys.argv)  # type: ignore
        widgets = []

        class Bot:
            def addWidget(self, w):  # mimic pytest-qt API subset
                widgets.append(w)

            def waitUntil(self, predicate, timeout=1000):  # noqa: N802
                from PyQt6.QtCore import QCoreApplication, QElapsedTimer

                timer = QElapsedTimer()
                timer.start()
                while not predicate():
                    if timer.elapsed() > timeout:
                        raise AssertionError("waitUntil timed out")
                    QCoreApplication.processEvents()

        yield Bot()
        for w in widgets:
            w.close()
            w.deleteLater()


@pytest.fixture(autouse=True)
def _reset_focusnav_logger():
    import logging

    pkg = logging.getLogger("focusnav")
    level, handlers = pkg.level, list(pkg.handlers)
    yield
    pkg.setLevel(level)
    for h in list(pkg.handlers):
        if h not in handlers:
            pkg.removeHandler(h)
