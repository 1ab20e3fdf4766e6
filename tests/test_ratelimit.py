from app.ratelimit import RateLimitMiddleware


def _limiter(now: list[float]) -> RateLimitMiddleware:
    return RateLimitMiddleware(
        None, max_requests=2, window_seconds=60, clock=lambda: now[0]
    )


def test_window_resets_after_it_elapses() -> None:
    now = [0.0]
    limiter = _limiter(now)
    assert [limiter._hit("a")[0] for _ in range(3)] == [True, True, False]
    assert limiter._hit("a")[1] == 60

    now[0] = 45.0
    assert limiter._hit("a") == (False, 15)

    now[0] = 61.0
    assert limiter._hit("a") == (True, 60)


def test_expired_windows_are_pruned() -> None:
    now = [0.0]
    limiter = _limiter(now)
    for i in range(100):
        limiter._hit(f"10.0.0.{i}")
    assert len(limiter._windows) == 100

    now[0] = 30.0
    limiter._hit("10.0.1.1")
    assert len(limiter._windows) == 101

    now[0] = 75.0
    limiter._hit("10.0.1.2")
    assert set(limiter._windows) == {"10.0.1.1", "10.0.1.2"}
