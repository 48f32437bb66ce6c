"""PySide6 launcher window bound to the headless launcher models."""

from __future__ import annotations

import logging as py_logging
import sys
import time

from devlauncher.backend import ProjectBackend
from devlauncher.config import KeyValueStore
from devlauncher.errors import DevLauncherError, ExitCode
from devlauncher.models import Environment, Template
from devlauncher.ui.app import LauncherApp
from devlauncher.ui.dialogs import (
    BranchPrompt,
    ClonePrompt,
    CommitHistoryView,
    CommitMessagePrompt,
    DeleteConfirmation,
    NewProjectPrompt,
    StashPrompt,
)
from devlauncher.ui.overlay import ContextMenu
from devlauncher.ui.render import GridView, ProjectCard, filter_view
from devlauncher.ui.toast import Toast

logger = py_logging.getLogger(__name__)

_GRID_COLUMNS = 3


def launch_window(
    *,
    preferences: KeyValueStore,
    backend: ProjectBackend,
    env: Environment | None = None,
) -> int:  # pragma: no cover
    try:
        from PySide6 import QtAsyncio
        from PySide6.QtCore import QMimeData, Qt, QTimer
        from PySide6.QtGui import QDrag, QGuiApplication
        from PySide6.QtWidgets import (
            QApplication,
            QCheckBox,
            QComboBox,
            QDialog,
            QDialogButtonBox,
            QFormLayout,
            QFrame,
            QGridLayout,
            QHBoxLayout,
            QInputDialog,
            QLabel,
            QLineEdit,
            QMainWindow,
            QMessageBox,
            QPushButton,
            QScrollArea,
            QVBoxLayout,
            QWidget,
        )
    except ImportError as exc:
        raise DevLauncherError(
            "PySide6 is not installed; the launcher window cannot open.",
            code=ExitCode.GUI_UNAVAILABLE,
            hint="Run `pip install PySide6` and retry, or use --list.",
        ) from exc

    def spawn(coro) -> None:
        window.app.spawn(coro)

    class CardWidget(QFrame):
        def __init__(self, window: LauncherWindow, card: ProjectCard) -> None:
            super().__init__()
            self.window_ref = window
            self.card = card
            self._press_pos = None
            self.setAcceptDrops(True)
            self.setFrameShape(QFrame.Shape.Box)
            self.setObjectName("projectCard")

            layout = QVBoxLayout(self)
            header = QHBoxLayout()
            header.addWidget(QLabel(f"<b>{card.name}</b>"))
            pin = QPushButton("PINNED" if card.pinned else "PIN")
            pin.clicked.connect(lambda: spawn(window.app.actions.run_card_action("pin", card)))
            header.addWidget(pin)
            layout.addLayout(header)

            status = card.status_label
            if card.commits_label:
                status = f"{status}  {card.commits_label}"
            if card.has_status:
                branch = QPushButton(f"{status} ▼")
                branch.setFlat(True)
                branch.setToolTip("Click to switch branches")
                branch.clicked.connect(lambda: spawn(window.app.actions.run_card_action("branch", card)))
                layout.addWidget(branch)
            else:
                layout.addWidget(QLabel(status))
            layout.addWidget(QLabel(card.path))
            layout.addWidget(QLabel(card.time_label))

            if card.has_status:
                buttons = QHBoxLayout()
                for label, action in (("HISTORY", "history"), ("STASH", "stash")):
                    button = QPushButton(label)
                    button.clicked.connect(
                        lambda _=False, action=action: spawn(window.app.actions.run_card_action(action, card))
                    )
                    buttons.addWidget(button)
                pull = QPushButton("PULL")
                pull.setEnabled(card.can_pull)
                pull.clicked.connect(lambda: spawn(window.app.actions.run_card_action("pull", card)))
                push = QPushButton("PUSH")
                push.setEnabled(card.can_push)
                push.clicked.connect(lambda: spawn(window.app.actions.run_card_action("push", card)))
                buttons.addWidget(pull)
                buttons.addWidget(push)
                layout.addLayout(buttons)
            self.refresh_markers()

        def refresh_markers(self) -> None:
            markers = self.window_ref.app.drag.markers
            style = ""
            if markers.dragging == self.card.name:
                style = "QFrame#projectCard { border: 2px dashed #888; }"
            elif markers.drop_target == self.card.name:
                style = "QFrame#projectCard { border: 2px solid #c94a4a; }"
            elif self.card.pinned:
                style = "QFrame#projectCard { border: 2px solid #d4a017; }"
            self.setStyleSheet(style)

        def mousePressEvent(self, event) -> None:
            if event.button() == Qt.MouseButton.LeftButton:
                self._press_pos = event.position().toPoint()
            self.window_ref.handle_click(event)
            super().mousePressEvent(event)

        def mouseMoveEvent(self, event) -> None:
            if self._press_pos is None or not (event.buttons() & Qt.MouseButton.LeftButton):
                return
            if (event.position().toPoint() - self._press_pos).manhattanLength() < QApplication.startDragDistance():
                return
            controller = self.window_ref.app.drag
            mime = QMimeData()
            mime.setText(controller.drag_start(self.card.name, self.card.path))
            self.window_ref.refresh_markers()
            drag = QDrag(self)
            drag.setMimeData(mime)
            drag.exec(Qt.DropAction.MoveAction)
            self._press_pos = None
            controller.drag_end()
            QTimer.singleShot(20, self.window_ref.refresh_markers)

        def dragEnterEvent(self, event) -> None:
            self.dragMoveEvent(event)

        def dragMoveEvent(self, event) -> None:
            if self.window_ref.app.drag.drag_over_card(self.card.name):
                event.acceptProposedAction()
            self.window_ref.refresh_markers()

        def dropEvent(self, event) -> None:
            self.window_ref.app.drag.drop_on_card(self.card.name, event.mimeData().text())
            event.acceptProposedAction()

        def contextMenuEvent(self, event) -> None:
            point = self.mapTo(self.window_ref, event.pos())
            self.window_ref.app.actions.open_project_menu(self.card, point.x(), point.y())
            self.window_ref.sync_menus()

    class TrashZone(QLabel):
        def __init__(self, window: LauncherWindow) -> None:
            super().__init__("DROP HERE TO DELETE")
            self.window_ref = window
            self.setAcceptDrops(True)
            self.setAlignment(Qt.AlignmentFlag.AlignCenter)
            self.setVisible(False)

        def dragEnterEvent(self, event) -> None:
            self.dragMoveEvent(event)

        def dragMoveEvent(self, event) -> None:
            if self.window_ref.app.drag.drag_over_trash():
                event.acceptProposedAction()
            self.window_ref.refresh_markers()

        def dropEvent(self, event) -> None:
            event.acceptProposedAction()
            self.window_ref.app.drag.drop_on_trash(event.mimeData().text())
            self.window_ref.refresh_markers()

    class MenuWidget(QFrame):
        def __init__(self, window: LauncherWindow, model: ContextMenu, handler) -> None:
            super().__init__(window)
            self.model = model
            self.setFrameShape(QFrame.Shape.StyledPanel)
            self.setAutoFillBackground(True)
            layout = QVBoxLayout(self)
            layout.setContentsMargins(0, 0, 0, 0)
            layout.setSpacing(0)
            for item in model.items:
                button = QPushButton(item.label)
                button.setFixedHeight(model.item_height)
                button.clicked.connect(lambda _=False, action=item.action: spawn(handler(action)))
                layout.addWidget(button)
            self.setFixedSize(*model.size())
            self.hide()

        def sync(self) -> None:
            if self.model.visible:
                self.move(self.model.x, self.model.y)
                self.raise_()
                self.show()
            else:
                self.hide()

    class LauncherWindow(QMainWindow):
        def __init__(self) -> None:
            super().__init__()
            self.app: LauncherApp
            self.menus: list[MenuWidget] = []
            self.cards: list[CardWidget] = []
            self.setWindowTitle("devlauncher")
            self.resize(1100, 720)
            self.setAcceptDrops(True)

            central = QWidget()
            outer = QVBoxLayout(central)
            toolbar = QHBoxLayout()
            self.env_box = QComboBox()
            self.env_box.addItems([item.value for item in Environment])
            self.template_box = QComboBox()
            self.template_box.addItems([item.value for item in Template])
            self.github_box = QCheckBox("Create GitHub repo")
            self.auth_label = QLabel("")
            toolbar.addWidget(QLabel("Environment"))
            toolbar.addWidget(self.env_box)
            toolbar.addWidget(QLabel("Template"))
            toolbar.addWidget(self.template_box)
            toolbar.addWidget(self.github_box)
            toolbar.addStretch(1)
            toolbar.addWidget(self.auth_label)
            outer.addLayout(toolbar)
            self.search = QLineEdit()
            self.search.setPlaceholderText("Search projects")
            self.search.textChanged.connect(lambda _: self.redraw())
            outer.addWidget(self.search)

            scroll = QScrollArea()
            scroll.setWidgetResizable(True)
            content = QWidget()
            self.content_layout = QVBoxLayout(content)
            self.pinned_title = QLabel("PINNED")
            self.pinned_holder = QWidget()
            self.pinned_grid = QGridLayout(self.pinned_holder)
            self.projects_holder = QWidget()
            self.projects_grid = QGridLayout(self.projects_holder)
            self.placeholder = QLabel("")
            self.content_layout.addWidget(self.pinned_title)
            self.content_layout.addWidget(self.pinned_holder)
            self.content_layout.addWidget(QLabel("PROJECTS"))
            self.content_layout.addWidget(self.placeholder)
            self.content_layout.addWidget(self.projects_holder)
            self.content_layout.addStretch(1)
            scroll.setWidget(content)
            outer.addWidget(scroll, 1)

            self.trash = TrashZone(self)
            outer.addWidget(self.trash)
            self.setCentralWidget(central)

        def bind(self, app: LauncherApp) -> None:
            self.app = app
            self.menus = [
                MenuWidget(self, app.project_menu, app.actions.run_project_action),
                MenuWidget(self, app.app_menu, app.actions.run_app_action),
            ]
            settings = app.store.settings
            self.env_box.setCurrentText(settings.default_env.value)
            self.template_box.setCurrentText(settings.default_template.value)
            self.github_box.setChecked(settings.auto_create_github)
            self.env_box.currentTextChanged.connect(lambda value: self.save_setting(default_env=value))
            self.template_box.currentTextChanged.connect(
                lambda value: self.save_setting(default_template=value)
            )
            self.github_box.toggled.connect(lambda value: self.save_setting(auto_create_github=value))

        def save_setting(self, **changes: object) -> None:
            try:
                self.app.store.set_settings(**changes)
            except DevLauncherError as exc:
                self.app.toasts.error(str(exc))

        def draw(self, view: GridView) -> None:
            self._fill(view)

        def redraw(self) -> None:
            if self.app.pipeline.last_view is not None:
                self._fill(self.app.pipeline.last_view)

        def _fill(self, view: GridView) -> None:
            self.auth_label.setText("GitHub: connected" if self.app.store.authenticated else "GitHub: not connected")
            shown = filter_view(view, self.search.text())
            self.cards = []
            for grid, cards in ((self.pinned_grid, shown.pinned), (self.projects_grid, shown.unpinned)):
                while grid.count():
                    widget = grid.takeAt(0).widget()
                    if widget is not None:
                        widget.deleteLater()
                for index, card in enumerate(cards):
                    widget = CardWidget(self, card)
                    self.cards.append(widget)
                    grid.addWidget(widget, index // _GRID_COLUMNS, index % _GRID_COLUMNS)
            self.pinned_title.setVisible(view.pinned_visible)
            self.pinned_holder.setVisible(view.pinned_visible)
            self.placeholder.setText(view.placeholder.value if view.placeholder else "")
            self.placeholder.setVisible(view.placeholder is not None)

        def refresh_markers(self) -> None:
            markers = self.app.drag.markers
            self.trash.setVisible(markers.trash_visible)
            self.trash.setStyleSheet("background: #c94a4a;" if markers.trash_hover else "")
            for card in self.cards:
                card.refresh_markers()

        def sync_menus(self) -> None:
            for menu in self.menus:
                menu.sync()

        def handle_click(self, event) -> None:
            point = event.globalPosition().toPoint()
            local = self.mapFromGlobal(point)
            if event.button() == Qt.MouseButton.LeftButton:
                self.app.overlays.handle_click(local.x(), local.y())
                self.sync_menus()

        def mousePressEvent(self, event) -> None:
            self.handle_click(event)
            super().mousePressEvent(event)

        def contextMenuEvent(self, event) -> None:
            self.app.actions.open_app_menu(event.pos().x(), event.pos().y())
            self.sync_menus()

        def dragMoveEvent(self, event) -> None:
            if self.app.drag.drag_over_nowhere():
                event.acceptProposedAction()
            else:
                event.ignore()
            self.refresh_markers()

        def show_toast(self, toast: Toast) -> None:
            self.statusBar().showMessage(toast.message, toast.duration_ms)

    def ask_delete(dialog: DeleteConfirmation) -> bool:
        text, accepted = QInputDialog.getText(
            window,
            "DELETE PROJECT",
            f"To delete this project, type its name:\n{dialog.name}",
        )
        dialog.update_input(text)
        return bool(accepted)

    def ask_commit(prompt: CommitMessagePrompt) -> bool:
        label = "Commit message:"
        if prompt.preview:
            label = f"Changes to be committed (preview):\n{prompt.preview}\n\n{label}"
        text, accepted = QInputDialog.getText(window, "COMMIT & PUSH", label, text=prompt.message)
        prompt.update_input(text)
        return bool(accepted)

    def ask_new_project(prompt: NewProjectPrompt) -> bool:
        dialog = QDialog(window)
        dialog.setWindowTitle("NEW PROJECT")
        form = QFormLayout(dialog)
        name = QLineEdit()
        name.setPlaceholderText("my-project")
        template = QComboBox()
        template.addItems([item.value for item in Template])
        template.setCurrentText(prompt.template.value)
        env_box = QComboBox()
        env_box.addItems([item.value for item in Environment])
        env_box.setCurrentText(prompt.env.value)
        github = QCheckBox("Create GitHub repository")
        github.setChecked(prompt.create_github)
        buttons = QDialogButtonBox(QDialogButtonBox.StandardButton.Ok | QDialogButtonBox.StandardButton.Cancel)
        buttons.accepted.connect(dialog.accept)
        buttons.rejected.connect(dialog.reject)
        form.addRow("Project name", name)
        form.addRow("Template", template)
        form.addRow("Environment", env_box)
        form.addRow(github)
        form.addRow(buttons)
        if dialog.exec() != QDialog.DialogCode.Accepted:
            return False
        prompt.update_input(name.text())
        prompt.template = Template(template.currentText())
        prompt.env = Environment(env_box.currentText())
        prompt.create_github = github.isChecked()
        return True

    def ask_clone(prompt: ClonePrompt) -> bool:
        text, accepted = QInputDialog.getText(
            window,
            "CLONE REPOSITORY",
            f"Repository URL ({prompt.env.value}):",
            text="https://github.com/",
        )
        prompt.update_input(text)
        return bool(accepted)

    def ask_branch(prompt: BranchPrompt) -> bool:
        new_item = "+ Create new branch"
        labels = [*prompt.labels(), new_item]
        choice, accepted = QInputDialog.getItem(window, "SWITCH BRANCH", "Select a branch:", labels, 0, False)
        if not accepted:
            return False
        if choice == new_item:
            name, accepted = QInputDialog.getText(window, "CREATE BRANCH", "New branch name:")
            prompt.update_input(name)
            return bool(accepted)
        prompt.choose(prompt.branches[labels.index(choice)])
        return True

    def ask_stash(prompt: StashPrompt) -> bool:
        box = QMessageBox(window)
        box.setWindowTitle("STASH OPTIONS")
        box.setText("Choose an action for your changes:")
        stash = box.addButton("STASH CHANGES", QMessageBox.ButtonRole.AcceptRole)
        restore = box.addButton("RESTORE STASH", QMessageBox.ButtonRole.ActionRole)
        box.addButton(QMessageBox.StandardButton.Cancel)
        box.exec()
        clicked = box.clickedButton()
        if clicked is stash:
            prompt.choice = "stash"
        elif clicked is restore:
            prompt.choice = "pop"
        return prompt.choice is not None

    def show_history(view: CommitHistoryView) -> None:
        QMessageBox.information(window, f"COMMIT HISTORY: {view.name}", "\n".join(view.lines(time.time())))

    def copy_text(text: str) -> None:
        QGuiApplication.clipboard().setText(text)

    qt_app = QApplication.instance() or QApplication(sys.argv)
    qt_app.setApplicationName("devlauncher")
    window = LauncherWindow()
    app = LauncherApp(
        preferences=preferences,
        backend=backend,
        surface=window,
        viewport=lambda: (window.width(), window.height()),
        delete_prompt=ask_delete,
        commit_prompt=ask_commit,
        project_prompt=ask_new_project,
        clone_prompt=ask_clone,
        branch_prompt=ask_branch,
        stash_prompt=ask_stash,
        show_history=show_history,
        clipboard=copy_text,
        schedule=lambda delay, callback: QTimer.singleShot(int(delay * 1000), callback),
    )
    app.toasts.sink = window.show_toast
    window.bind(app)
    window.show()
    logger.info("Launcher window opened")
    QtAsyncio.run(app.startup(env=env), keep_running=True, quit_qapp=True)
    return int(ExitCode.SUCCESS)
