from PyQt6.QtCore import QObject, pyqtSignal


class RenderBridge(QObject):
    """Re-emits DiagramController events as Qt signals for views to redraw from"""

    # Signals for state refreshes after each settle
    stateChanged = pyqtSignal(str, bool)  # name, on/off
    displayChanged = pyqtSignal(str, str)  # display name, text
    circuitSolved = pyqtSignal(object)  # SolveResult
    diagramLoaded = pyqtSignal(str)  # diagram name
    diagramCleared = pyqtSignal()

    def __init__(self, controller=None, parent=None):
        super().__init__(parent)
        self.controller = None
        if controller is not None:
            self.attach(controller)

    def attach(self, controller) -> None:
        """Start forwarding events from ``controller``, detaching any previous one."""
        self.detach()
        self.controller = controller
        controller.add_observer(self._on_event)

    def detach(self) -> None:
        if self.controller is not None:
            self.controller.remove_observer(self._on_event)
            self.controller = None

    def _on_event(self, event: str, data) -> None:
        if event == "state_changed":
            name, state = data
            self.stateChanged.emit(name, bool(state))
        elif event == "display_changed":
            name, text = data
            self.displayChanged.emit(name, text)
        elif event == "circuit_solved":
            self.circuitSolved.emit(data)
        elif event == "diagram_loaded":
            self.diagramLoaded.emit(data.name)
        elif event == "diagram_cleared":
            self.diagramCleared.emit()
