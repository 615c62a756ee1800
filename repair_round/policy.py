from .controller import GAME_COMPLETE, REPAIRING, REVEALING, ROUND_COMPLETE, RoundController


def _press_space(env):
    return 1 if not env.prev_space_held else 0


def _clear(rect, dx, dy, house):
    return not rect.union(rect.move(dx, dy)).colliderect(house)


def _movement(dx, dy):
    if dx < 0:
        return 3
    if dx > 0:
        return 4
    if dy < 0:
        return 1
    return 2


def _walk_towards(controller, target):
    # Strategy: follow an L-shaped route (x then y, or y then x) whose sweep
    # misses the house. When the target is straight across the house both
    # routes are blocked, so first walk to the lane beside the house that
    # costs the least; from there the x-first or y-first route is clear.
    player = controller.session.player.rect
    house = controller.session.layout.house
    step = controller.MOVE_SPEED
    gap_x = target.rect.centerx - player.centerx
    gap_y = target.rect.centery - player.centery

    if _clear(player, gap_x, 0, house) and _clear(player.move(gap_x, 0), 0, gap_y, house):
        if abs(gap_x) >= step:
            return _movement(gap_x, 0)
        return _movement(0, gap_y)
    if _clear(player, 0, gap_y, house) and _clear(player.move(0, gap_y), gap_x, 0, house):
        if abs(gap_y) >= step:
            return _movement(0, gap_y)
        return _movement(gap_x, 0)

    goal_x = target.rect.centerx - player.width // 2
    goal_y = target.rect.centery - player.height // 2
    if player.top < house.bottom and player.bottom > house.top:
        lanes = (house.top - player.height, house.bottom)
        lane = min(lanes, key=lambda y: abs(player.y - y) + abs(goal_y - y))
        return _movement(0, lane - player.y)
    lanes = (house.left - player.width, house.right)
    lane = min(lanes, key=lambda x: abs(player.x - x) + abs(goal_x - x))
    return _movement(lane - player.x, 0)


def _next_key(controller):
    s = controller.session
    answer = str(s.current_problem.expected_answer)
    typed = s.pending_answer
    if typed == answer:
        return 12  # submit
    if answer.startswith(typed):
        return int(answer[len(typed)]) + 1  # next digit
    return 11  # backspace


def policy(env):
    """Walks to the nearest broken unit, starts the repair and types the right answer."""
    controller: RoundController = env.controller
    state = controller.state

    if state == GAME_COMPLETE or state == REVEALING:
        return [0, 0, 0]
    if state == ROUND_COMPLETE:
        return [0, _press_space(env), 0]
    if state == REPAIRING:
        return [0, 0, _next_key(controller)]

    if controller.nearby_target() is not None:
        return [0, _press_space(env), 0]

    player = controller.session.player.rect
    unfixed = controller.session.layout.unfixed_targets
    if not unfixed:
        return [0, 0, 0]
    target = min(unfixed, key=lambda t: ((t.rect.centerx - player.centerx) ** 2 + (t.rect.centery - player.centery) ** 2, t.id))
    return [_walk_towards(controller, target), 0, 0]
