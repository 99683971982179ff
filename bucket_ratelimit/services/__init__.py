"""Counter stores, the bucket counter and the limiter built on them."""
