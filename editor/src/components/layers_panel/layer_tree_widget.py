"""
Layer Tree Editor - Layers Panel Widget

Renders the engine's flattened rows (groups and leaves, indented by depth)
and turns clicks and mouse drags into engine commands.
Row drags are tracked by hand so horizontal distance can change depth.
"""

from PyQt5.QtWidgets import (QWidget, QVBoxLayout, QHBoxLayout, QPushButton, QLabel,
                             QLineEdit, QApplication)
from PyQt5.QtCore import Qt, pyqtSignal

from constants import DEFAULT_INDENT_STEP

DRAG_START_DISTANCE = 6


class LayerTreeWidget(QWidget):
	"""Layers panel: one row per flattened item"""

	selection_changed = pyqtSignal(list)
	drag_preview_changed = pyqtSignal(object)

	def __init__(self, engine=None, parent=None):
		super().__init__(parent)
		self.engine = None
		self.filter_query = ''
		self.row_widgets = []  # List of (FlatItem, row button) tuples
		self.drag_start_id = None
		self.drag_start_pos = None
		self.dragging = False
		self.drop_plan = None
		self._suppress_click = False

		self._setup_ui()
		if engine is not None:
			self.set_engine(engine)

	def _setup_ui(self):
		"""Setup toolbar, search box and the row list"""
		main_layout = QVBoxLayout(self)
		main_layout.setContentsMargins(0, 0, 0, 0)
		main_layout.setSpacing(2)

		toolbar = QHBoxLayout()
		toolbar.setSpacing(2)
		self.new_group_btn = QPushButton("New Group")
		self.new_group_btn.clicked.connect(self._handle_new_group)
		toolbar.addWidget(self.new_group_btn)
		self.group_btn = QPushButton("Group")
		self.group_btn.clicked.connect(self._handle_group)
		toolbar.addWidget(self.group_btn)
		self.ungroup_btn = QPushButton("Ungroup")
		self.ungroup_btn.clicked.connect(self._handle_ungroup)
		toolbar.addWidget(self.ungroup_btn)
		main_layout.addLayout(toolbar)

		self.search_edit = QLineEdit()
		self.search_edit.setPlaceholderText("Search layers")
		self.search_edit.textChanged.connect(self.set_filter_query)
		main_layout.addWidget(self.search_edit)

		rows_container = QWidget()
		self.rows_layout = QVBoxLayout(rows_container)
		self.rows_layout.setContentsMargins(0, 0, 0, 0)
		self.rows_layout.setSpacing(1)
		self.rows_layout.addStretch()
		main_layout.addWidget(rows_container)

		self.drop_label = QLabel("")
		self.drop_label.setStyleSheet("color: #5a8dbf; font-size: 10px;")
		main_layout.addWidget(self.drop_label)

	def set_engine(self, engine):
		"""Attach to an engine and rebuild on every committed change"""
		if self.engine is not None:
			self.engine.remove_listener(self.rebuild)
		self.engine = engine
		engine.add_listener(self.rebuild)
		self.rebuild()

	@property
	def indent_step(self):
		return self.engine.config.indent_step if self.engine else DEFAULT_INDENT_STEP

	# ========================================
	# Building Rows
	# ========================================

	def rebuild(self):
		"""Recreate every row from engine.flatten()"""
		while self.rows_layout.count() > 0:
			item = self.rows_layout.takeAt(0)
			if item.widget():
				item.widget().deleteLater()
		self.row_widgets.clear()

		if not self.engine:
			self.rows_layout.addStretch()
			return

		for flat_item in self.engine.flatten(query=self.filter_query or None):
			if flat_item.is_node:
				row = self._create_node_row(flat_item)
			else:
				row = self._create_leaf_row(flat_item)
			self.rows_layout.addWidget(row)

		self.rows_layout.addStretch()
		self.update_selection_visuals()

	def _create_row_button(self, flat_item):
		"""Indented, checkable row shell shared by group and leaf rows"""
		container_widget = QWidget()
		container_layout = QHBoxLayout(container_widget)
		container_layout.setContentsMargins(0, 0, 0, 0)
		container_layout.setSpacing(0)

		indent_spacer = QWidget()
		indent_spacer.setFixedWidth(int(flat_item.depth * self.indent_step))
		container_layout.addWidget(indent_spacer)

		row_btn = QPushButton()
		row_btn.setCheckable(True)
		row_btn.setFixedHeight(28)
		row_btn.setProperty('item_id', flat_item.id)
		row_btn.setProperty('item_kind', flat_item.kind)
		row_btn.clicked.connect(lambda checked, i=flat_item.id: self._handle_row_click(i))

		row_btn.mousePressEvent = lambda event, i=flat_item.id, btn=row_btn: self._row_mouse_press(event, i, btn)
		row_btn.mouseMoveEvent = lambda event, btn=row_btn: self._row_mouse_move(event, btn)
		row_btn.mouseReleaseEvent = lambda event, btn=row_btn: self._row_mouse_release(event, btn)

		row_btn.setStyleSheet("""
			QPushButton {
				text-align: left;
				border: 1px solid rgba(255, 255, 255, 40);
				border-radius: 3px;
				background-color: rgba(255, 255, 255, 10);
			}
			QPushButton:checked {
				border: 2px solid #5a8dbf;
				background-color: rgba(90, 141, 191, 30);
			}
		""")

		btn_layout = QHBoxLayout(row_btn)
		btn_layout.setContentsMargins(4, 2, 4, 2)
		btn_layout.setSpacing(4)

		container_layout.addWidget(row_btn)
		self.row_widgets.append((flat_item, row_btn))
		return container_widget, row_btn, btn_layout

	def _create_node_row(self, flat_item):
		container_widget, row_btn, btn_layout = self._create_row_button(flat_item)
		node = self.engine.tree.get(flat_item.id)

		toggle_btn = QPushButton("[-]" if node.expanded else "[+]")
		toggle_btn.setFixedSize(22, 20)
		toggle_btn.setToolTip("Expand/Collapse")
		toggle_btn.clicked.connect(lambda checked, i=flat_item.id: self.engine.toggle_expand(i))
		btn_layout.addWidget(toggle_btn)

		name_label = QLabel(node.name)
		name_label.setStyleSheet("border: none; font-weight: bold;")
		name_label.setToolTip("Double-click to rename")
		name_label.mouseDoubleClickEvent = lambda event, i=flat_item.id, lbl=name_label: \
			self._start_name_edit(i, lbl, btn_layout)
		btn_layout.addWidget(name_label, stretch=1)

		locked = self.engine.is_locked(flat_item.id)
		self._add_action(btn_layout, "🔒" if locked else "🔓", "Lock",
			lambda checked, i=flat_item.id: self.engine.toggle_lock_recursive(i))
		self._add_action(btn_layout, "👁" if self.engine.is_node_visible(flat_item.id) else "🚫", "Visibility",
			lambda checked, i=flat_item.id: self.engine.toggle_visibility_recursive(i))
		self._add_action(btn_layout, "+", "New group inside",
			lambda checked, i=flat_item.id: self.engine.create_node(i))
		self._add_action(btn_layout, "⧉", "Clone",
			lambda checked, i=flat_item.id: self.engine.clone_subtree(i))
		self._add_action(btn_layout, "✕", "Delete",
			lambda checked, i=flat_item.id: self.engine.delete_node(i))

		row_btn.setFixedHeight(30)
		return container_widget

	def _create_leaf_row(self, flat_item):
		container_widget, row_btn, btn_layout = self._create_row_button(flat_item)
		entry = self.engine.leaf_entry(flat_item.id)

		kind_label = QLabel(entry.kind if entry else '')
		kind_label.setStyleSheet("border: none; color: gray; font-size: 10px;")
		btn_layout.addWidget(kind_label)

		name_label = QLabel(entry.name if entry else flat_item.id)
		name_label.setStyleSheet("border: none;")
		btn_layout.addWidget(name_label, stretch=1)

		self._add_action(btn_layout, "🔒" if self.engine.is_leaf_locked(flat_item.id) else "🔓", "Lock",
			lambda checked, i=flat_item.id: self.engine.toggle_leaf_lock(i))
		self._add_action(btn_layout, "👁" if self.engine.is_leaf_visible(flat_item.id) else "🚫", "Visibility",
			lambda checked, i=flat_item.id: self.engine.toggle_leaf_visibility(i))
		self._add_action(btn_layout, "⧉", "Duplicate",
			lambda checked, i=flat_item.id: self.engine.duplicate_leaf(i))
		self._add_action(btn_layout, "✕", "Delete",
			lambda checked, i=flat_item.id: self.engine.delete_leaf(i))
		return container_widget

	def _add_action(self, layout, text, tooltip, callback):
		btn = QPushButton(text)
		btn.setFixedSize(20, 20)
		btn.setToolTip(tooltip)
		btn.setProperty('action', tooltip)
		btn.setStyleSheet("""
			QPushButton {
				border: 1px solid rgba(255, 255, 255, 60);
				border-radius: 2px;
				font-size: 10px;
				padding: 0px;
			}
		""")
		btn.clicked.connect(callback)
		layout.addWidget(btn)
		return btn

	# ========================================
	# Lookup
	# ========================================

	def row_ids(self):
		"""Ids of the displayed rows, top to bottom"""
		return [flat_item.id for flat_item, _ in self.row_widgets]

	def row_button(self, item_id):
		for flat_item, btn in self.row_widgets:
			if flat_item.id == item_id:
				return btn
		return None

	def action_button(self, item_id, action):
		"""Inline button of a row by tooltip ('Lock', 'Delete', ...)"""
		row = self.row_button(item_id)
		if row is None:
			return None
		for btn in row.findChildren(QPushButton):
			if btn.property('action') == action:
				return btn
		return None

	def _row_id_at(self, global_pos):
		for flat_item, btn in self.row_widgets:
			if btn.rect().contains(btn.mapFromGlobal(global_pos)):
				return flat_item.id
		return None

	# ========================================
	# Selection
	# ========================================

	def _handle_row_click(self, item_id):
		if self._suppress_click:
			self._suppress_click = False
			self.update_selection_visuals()
			return
		additive = bool(QApplication.keyboardModifiers() & Qt.ControlModifier)
		self.select_item(item_id, additive)

	def select_item(self, item_id, additive=False):
		"""Select a row; clicking a group also makes it the active group"""
		if not self.engine:
			return
		if self.engine.tree.is_group(item_id):
			self.engine.set_active_group(item_id)
		self.engine.select(item_id, additive)
		self.update_selection_visuals()

	def update_selection_visuals(self):
		selected = set(self.engine.selected_ids()) if self.engine else set()
		for flat_item, btn in self.row_widgets:
			btn.setChecked(flat_item.id in selected)
		self.selection_changed.emit(sorted(selected))

	def mousePressEvent(self, event):
		"""Click on empty space clears the selection"""
		if event.button() == Qt.LeftButton and self.engine:
			child = self.childAt(event.pos())
			if child is None or child == self:
				self.engine.clear_selection()
				self.update_selection_visuals()
		super().mousePressEvent(event)

	def keyPressEvent(self, event):
		if event.key() == Qt.Key_Escape and self.dragging:
			self.cancel_row_drag()
			return
		super().keyPressEvent(event)

	# ========================================
	# Toolbar
	# ========================================

	def _handle_new_group(self):
		if self.engine:
			self.engine.create_node(self.engine.active_group_id)

	def _handle_group(self):
		if self.engine:
			self.engine.group()

	def _handle_ungroup(self):
		if self.engine:
			self.engine.ungroup()

	def set_filter_query(self, text):
		self.filter_query = (text or '').strip()
		self.rebuild()

	# ========================================
	# Rename
	# ========================================

	def _start_name_edit(self, item_id, label, layout):
		"""Swap the name label for a line edit"""
		label.hide()
		line_edit = QLineEdit(label.text())
		line_edit.setProperty('item_id', item_id)
		line_edit.editingFinished.connect(lambda: self._finish_name_edit(item_id, line_edit, label))
		layout.insertWidget(layout.indexOf(label), line_edit)
		line_edit.setFocus()
		line_edit.selectAll()

	def _finish_name_edit(self, item_id, line_edit, label):
		new_name = line_edit.text().strip()
		line_edit.deleteLater()
		label.show()
		# Blank names are ignored by the engine
		if not self.engine.rename_node(item_id, new_name):
			label.setText(self.engine.tree.get(item_id).name if self.engine.tree.has_node(item_id) else label.text())

	# ========================================
	# Drag Reorder
	# ========================================

	def _row_mouse_press(self, event, item_id, button):
		if event.button() == Qt.LeftButton:
			self.drag_start_id = item_id
			self.drag_start_pos = event.globalPos()
		QPushButton.mousePressEvent(button, event)

	def _row_mouse_move(self, event, button):
		if not (event.buttons() & Qt.LeftButton) or self.drag_start_id is None:
			QPushButton.mouseMoveEvent(button, event)
			return

		delta = event.globalPos() - self.drag_start_pos
		if not self.dragging:
			if delta.manhattanLength() < DRAG_START_DISTANCE:
				return
			if not self.begin_row_drag(self.drag_start_id):
				self.drag_start_id = None
				return

		self.update_row_drag(delta.x(), self._row_id_at(event.globalPos()))

	def _row_mouse_release(self, event, button):
		if self.dragging:
			self._suppress_click = True
			self.finish_row_drag()
		self.drag_start_id = None
		QPushButton.mouseReleaseEvent(button, event)

	def begin_row_drag(self, item_id):
		"""Start a drag session for a row; False if it cannot be dragged"""
		if not self.engine or not self.engine.begin_drag(item_id):
			return False
		self.dragging = True
		self.drop_plan = None
		return True

	def update_row_drag(self, horizontal_offset, over_id):
		"""Preview where the dragged row would land"""
		if not self.dragging:
			return None
		self.drop_plan = self.engine.update_drag(horizontal_offset, over_id)
		if self.drop_plan is None:
			self.drop_label.setText("")
		else:
			parent = self.engine.tree.get(self.drop_plan.parent_id)
			self.drop_label.setText(f"→ {parent.name if parent else ''} (depth {self.drop_plan.depth})")
		self.drag_preview_changed.emit(self.drop_plan)
		return self.drop_plan

	def finish_row_drag(self):
		"""Commit the drag; returns True if something moved"""
		if not self.dragging:
			return False
		self.dragging = False
		self.drop_plan = None
		self.drop_label.setText("")
		moved = bool(self.engine.end_drag())
		if not moved:
			self.rebuild()
		return moved

	def cancel_row_drag(self):
		if not self.dragging:
			return
		self.dragging = False
		self.drop_plan = None
		self.drop_label.setText("")
		self.drag_start_id = None
		self.engine.cancel_drag()
		self.rebuild()
