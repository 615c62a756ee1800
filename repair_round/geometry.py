import math

import pygame


def make_rect(x, y, width, height):
    return pygame.Rect(int(round(x)), int(round(y)), int(width), int(height))


def rect_to_dict(rect):
    return {"x": rect.x, "y": rect.y, "width": rect.width, "height": rect.height}


def rect_from_dict(data):
    return pygame.Rect(int(data["x"]), int(data["y"]), int(data["width"]), int(data["height"]))


def rects_overlap(a, b, padding=0):
    """True if `a` grown by `padding` on every side touches or intersects `b`."""
    # Shared edges count as overlap
    return a.inflate(2 * padding + 2, 2 * padding + 2).colliderect(b)


def center_distance(a, b):
    return math.hypot(a.centerx - b.centerx, a.centery - b.centery)


def within_bounds(rect, left, top, right, bottom):
    return rect.left >= left and rect.top >= top and rect.right <= right and rect.bottom <= bottom
