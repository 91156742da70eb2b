"""Tests for YamlEditorApp running headless under Textual's pilot."""

import asyncio

from yed._path import NodePath
from yed.app import YamlEditorApp
from yed.model import DocumentModel
from yed.session import EditorSession


def _app():
    model = DocumentModel({"a": 1, "b": 2, "c": 3, "d": 4})
    return YamlEditorApp(EditorSession(model))


class TestMouseCoordinates:
    """Clicks and hover map to the row drawn under the pointer."""

    def test_click_selects_row_under_pointer(self):
        async def run():
            app = _app()
            async with app.run_test(size=(60, 20)) as pilot:
                await pilot.pause()
                # Widget line 3 is content line 2 below the top border:
                # rows are (root), a, b, ...
                await pilot.click("#tree", offset=(4, 3))
                await pilot.pause()
                return app.session.current_row().path

        assert asyncio.run(run()) == NodePath.from_dot("b")

    def test_hover_marks_row_under_pointer(self):
        async def run():
            app = _app()
            async with app.run_test(size=(60, 20)) as pilot:
                await pilot.pause()
                await pilot.hover("#tree", offset=(4, 4))
                await pilot.pause()
                return app.session.hover_row

        assert asyncio.run(run()) == 3

    def test_click_on_border_is_ignored(self):
        async def run():
            app = _app()
            async with app.run_test(size=(60, 20)) as pilot:
                await pilot.pause()
                await pilot.click("#tree", offset=(4, 0))
                await pilot.pause()
                return app.session.selection

        assert asyncio.run(run()) == 0
