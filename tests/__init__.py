"""Tests for the stream predictions backend."""
