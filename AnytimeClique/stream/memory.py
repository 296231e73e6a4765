import psutil


def process_memory_kb() -> int:
    """Resident set size of the current process, in KB."""
    return psutil.Process().memory_info().rss // 1024
