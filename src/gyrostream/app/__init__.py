"""Command line entry points (``gyrostream`` and ``gyrostream-gimbal``)."""
