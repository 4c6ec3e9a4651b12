"""Incremental technical indicators fed one observation or candle at a time."""