"""Conversions between OpenAI chat requests and responses and provider-specific formats."""