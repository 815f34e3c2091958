"""Velocity conversions, wall reflection and elastic collisions in 2D.

Velocities are stored as an angle in turns plus a speed in pixels/second.
Screen coordinates grow downwards, so an angle of 0.25 (north) moves up.
"""
from __future__ import annotations

import math
from dataclasses import dataclass

from .trig import acos, cos, round_angle, sin, sqr


@dataclass
class Velocity:
    angle: float = 0.0  # turns, [0, 1)
    speed: float = 0.0  # px / second


def to_vector(velocity: Velocity) -> tuple[float, float]:
    return (
        cos(velocity.angle) * velocity.speed,
        -sin(velocity.angle) * velocity.speed,
    )


def to_velocity(x: float, y: float) -> Velocity:
    speed = math.sqrt(sqr(x) + sqr(y))
    if speed == 0:
        return Velocity(0.0, 0.0)

    # acos only covers northward angles; flip when heading south
    angle = acos(x / speed)
    if y > 0:
        angle = round_angle(1 - angle)
    return Velocity(angle, speed)


def bounce_x(velocity: Velocity) -> None:
    """Reflect off a vertical (left or right) wall."""
    velocity.angle = round_angle(0.5 - velocity.angle)


def bounce_y(velocity: Velocity) -> None:
    """Reflect off a horizontal (top or bottom) wall."""
    velocity.angle = 0.0 if velocity.angle == 0 else round_angle(1 - velocity.angle)


def collide(body1, body2) -> None:
    """
    Elastically collide two bodies, updating both velocities in place.

    Each velocity is split into a component along the line between the two
    centers (the normal) and one across it (the tangent). Only the normal
    components are exchanged, weighted by mass, following
    http://vobarian.com/collisions/2dcollisions2.pdf
    """
    m1 = body1.mass
    m2 = body2.mass
    v1x, v1y = to_vector(body1.velocity)
    v2x, v2y = to_vector(body2.velocity)

    # Unit normal and unit tangent
    nx = body2.x - body1.x
    ny = body2.y - body1.y
    mn = math.sqrt(sqr(nx) + sqr(ny))
    if mn == 0:
        unx, uny = 1.0, 0.0
    else:
        unx, uny = nx / mn, ny / mn
    utx, uty = -uny, unx

    # Scalar velocities on the normal and tangent
    vn1 = unx * v1x + uny * v1y
    vt1 = utx * v1x + uty * v1y
    vn2 = unx * v2x + uny * v2y
    vt2 = utx * v2x + uty * v2y

    # Only the normal components change
    vn1_final = (vn1 * (m1 - m2) + 2 * m2 * vn2) / (m1 + m2)
    vn2_final = (vn2 * (m2 - m1) + 2 * m1 * vn1) / (m1 + m2)

    final1 = to_velocity(vn1_final * unx + vt1 * utx, vn1_final * uny + vt1 * uty)
    final2 = to_velocity(vn2_final * unx + vt2 * utx, vn2_final * uny + vt2 * uty)

    body1.velocity.angle, body1.velocity.speed = final1.angle, final1.speed
    body2.velocity.angle, body2.velocity.speed = final2.angle, final2.speed
