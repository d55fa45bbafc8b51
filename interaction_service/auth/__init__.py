"""Identity verification for bearer tokens from the external identity provider."""
