"""Network module for RESP-KV."""
