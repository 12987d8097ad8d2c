from __future__ import annotations
from .QtCore import QPointF, QLineF, QRectF

# Plain containment math shared by elements and the circuit's hit tests.
# Everything takes and returns QPointF so positions never leave Qt types.


def distance(a: QPointF, b: QPointF) -> float:
	return QLineF(a, b).length()


def distance_squared(a: QPointF, b: QPointF) -> float:
	d = b - a
	return QPointF.dotProduct(d, d)


def closest_point_on_line(point: QPointF, start: QPointF, end: QPointF) -> tuple[QPointF, float]:
	"""Projects ``point`` onto the segment and returns the projection plus
	its fraction ``d`` (0 at ``start``, 1 at ``end``)."""
	length_sqr = distance_squared(start, end)
	if length_sqr == 0:
		return QPointF(start), 0.5

	span = end - start
	d = QPointF.dotProduct(point - start, span) / length_sqr
	d = min(max(d, 0.0), 1.0)
	return start + span*d, d


def is_point_on_varying_line(
		point: QPointF,
		start: QPointF,
		end: QPointF,
		half_start: float,
		half_end: float,
		tolerance: float
	) -> bool:
	# stroke tapers linearly from half_start to half_end
	closest, d = closest_point_on_line(point, start, end)
	return distance(point, closest) <= half_start + (half_end-half_start)*d + tolerance


def is_point_within_area(point: QPointF, corner1: QPointF, corner2: QPointF) -> bool:
	x1, x2 = sorted((corner1.x(), corner2.x()))
	y1, y2 = sorted((corner1.y(), corner2.y()))
	return x1 <= point.x() <= x2 and y1 <= point.y() <= y2


def is_point_within_rect(point: QPointF, center: QPointF, rx: float, ry: float) -> bool:
	return abs(point.x()-center.x()) <= rx and abs(point.y()-center.y()) <= ry


def is_point_within_circle(point: QPointF, center: QPointF, r: float) -> bool:
	return distance_squared(point, center) <= r*r


def is_point_within_rhombus(point: QPointF, center: QPointF, rx: float, ry: float) -> bool:
	x = abs(point.x()-center.x()) / rx
	y = abs(point.y()-center.y()) / ry
	return x + y <= 1


def is_point_within_capsule(point: QPointF, center: QPointF, rx: float, ry: float) -> bool:
	# horizontal pill: a rectangle with a half circle on each end
	half = rx - ry
	left = QPointF(center.x()-half, center.y())
	right = QPointF(center.x()+half, center.y())
	return is_point_within_circle(point, left, ry) \
		or is_point_within_circle(point, right, ry) \
		or is_point_within_rect(point, center, half, ry)


def rect_around(center: QPointF, rx: float, ry: float) -> QRectF:
	return QRectF(center.x()-rx, center.y()-ry, rx*2, ry*2)


def perpendicular_offset(start: QPointF, end: QPointF, amount: float) -> QPointF:
	"""Offset that shifts a line sideways by ``amount``, used to draw the two
	halves of a bidirectional connection apart."""
	length = distance(start, end)
	if length == 0:
		return QPointF(0, 0)
	return QPointF(-(end.y()-start.y()) / length * amount, (end.x()-start.x()) / length * amount)
