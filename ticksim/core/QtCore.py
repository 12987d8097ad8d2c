# Using this file to import everything needed from PySide6 so that the rest
# of the project only ever depends on one place for Qt types

from PySide6.QtCore import (
	Qt, QCoreApplication, QObject, QTimer, Signal,
	QPointF, QLineF, QRectF,
)
