"""Test-specific configuration for Workshop Registry tests"""

# Test configuration dictionary; external services are replaced by doubles
test_config = {
    "anthropic_api_key": "test-key",
    "anthropic_model": "claude-3-5-haiku-latest",
    "log_level": "INFO",
    "app_base_url": "http://localhost:8082",
    "mailgun_api_key": "test-mailgun-key",
    "mailgun_domain": "mg.example.com",
    "sender_email": "Workshops <workshops@example.com>",
    "draft_ttl_seconds": 1800,
}
