"""
Unit tests for the webhook source limiter and client address resolution.
"""
from starlette.requests import Request

from armory.core.rate_limit import SourceRateLimiter, get_client_ip, is_processor_request


def make_request(headers=None, client=("203.0.113.9", 5000)):
    scope = {
        "type": "http",
        "method": "POST",
        "path": "/webhook",
        "headers": [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()],
        "client": client,
    }
    return Request(scope)


class TestSourceRateLimiter:
    def test_allows_up_to_the_limit(self):
        limiter = SourceRateLimiter("3/minute", "unit")

        assert [limiter.hit("1.1.1.1") for _ in range(4)] == [True, True, True, False]

    def test_sources_are_independent(self):
        limiter = SourceRateLimiter("1/minute", "unit")

        assert limiter.hit("1.1.1.1")
        assert not limiter.hit("1.1.1.1")
        assert limiter.hit("2.2.2.2")

    def test_reset(self):
        limiter = SourceRateLimiter("1/minute", "unit")
        limiter.hit("1.1.1.1")

        limiter.reset()

        assert limiter.hit("1.1.1.1")


class TestClientAddress:
    def test_direct_connection(self):
        assert get_client_ip(make_request()) == "203.0.113.9"

    def test_first_forwarded_hop(self):
        request = make_request({"X-Forwarded-For": "198.51.100.7, 10.0.0.1"})

        assert get_client_ip(request) == "198.51.100.7"


class TestProcessorRequests:
    def test_stripe_user_agent(self):
        assert is_processor_request(make_request({"User-Agent": "Stripe/1.0 (+https://stripe.com/docs/webhooks)"}))

    def test_other_user_agents(self):
        assert not is_processor_request(make_request({"User-Agent": "curl/8.0"}))
        assert not is_processor_request(make_request())
