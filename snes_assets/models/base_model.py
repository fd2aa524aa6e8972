#!/usr/bin/env python3
"""
Base model class with observable properties
Provides change notification for models driven by background work
"""

from PyQt6.QtCore import QObject, pyqtSignal


class ObservableProperty:
    """Property descriptor that emits signals on change"""

    def __init__(self, initial_value=None):
        self.value = initial_value
        self.name = None

    def __set_name__(self, owner, name):
        self.name = name
        self.private_name = f'_{name}'

    def __get__(self, obj, objtype=None):
        if obj is None:
            return self
        return getattr(obj, self.private_name, self.value)

    def __set__(self, obj, value):
        old_value = getattr(obj, self.private_name, self.value)
        # Identity first: results are large dataclasses and rarely equal
        if old_value is value or old_value == value:
            return
        setattr(obj, self.private_name, value)
        signal_name = f'{self.name}_changed'
        if hasattr(obj, signal_name):
            getattr(obj, signal_name).emit(value)
        if hasattr(obj, 'property_changed'):
            obj.property_changed.emit(self.name, value)


class BaseModel(QObject):
    """Base class for observable models"""

    # General property change signal
    property_changed = pyqtSignal(str, object)  # property_name, new_value

    def __init__(self, parent=None):
        super().__init__(parent)

    def to_dict(self):
        """Current values of all observable properties"""
        result = {}
        for attr_name in dir(self.__class__):
            attr = getattr(self.__class__, attr_name, None)
            if isinstance(attr, ObservableProperty):
                result[attr_name] = getattr(self, attr_name)
        return result
