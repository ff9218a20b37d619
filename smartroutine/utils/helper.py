def format_elapsed(ms: int | float) -> str:
    '''Render milliseconds as HH:MM:SS.'''
    total_seconds = max(0, int(ms // 1000))
    hours, rest = divmod(total_seconds, 3600)
    minutes, seconds = divmod(rest, 60)
    return f'{hours:02d}:{minutes:02d}:{seconds:02d}'


def progress_bar(percent: float, width: int = 10) -> str:
    filled = int(round(max(0.0, min(percent, 100.0)) / 100 * width))
    return '█' * filled + '░' * (width - filled)
