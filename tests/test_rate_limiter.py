import unittest

from pyLegoHub.rate_limiter import RateLimiter

from fakes import FixedClock


class RateLimiterTests(unittest.TestCase):
    def test_allows_max_rate_per_window(self) -> None:
        limiter = RateLimiter(3, clock=FixedClock())
        results = [limiter.okay_to_send() for _ in range(4)]
        self.assertEqual(results, [True, True, True, False])

    def test_window_restarts_after_one_second(self) -> None:
        clock = FixedClock()
        limiter = RateLimiter(2, clock=clock)
        self.assertTrue(limiter.okay_to_send())
        self.assertTrue(limiter.okay_to_send())
        self.assertFalse(limiter.okay_to_send())

        clock.now = 0.999
        self.assertFalse(limiter.okay_to_send())

        clock.now = 1.0
        self.assertTrue(limiter.okay_to_send())
        self.assertTrue(limiter.okay_to_send())
        self.assertFalse(limiter.okay_to_send())

    def test_dropped_calls_do_not_extend_the_window(self) -> None:
        clock = FixedClock()
        limiter = RateLimiter(1, clock=clock)
        limiter.okay_to_send()
        for step in range(5):
            clock.now = step * 0.1
            limiter.okay_to_send()
        clock.now = 1.0
        self.assertTrue(limiter.okay_to_send())


if __name__ == "__main__":
    unittest.main()
