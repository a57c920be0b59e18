"""Concrete adapters: subprocess invoker, speech engines, chat client, port probe."""
