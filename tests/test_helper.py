from smartroutine.utils.helper import format_elapsed, progress_bar


def test_format_elapsed():
    assert format_elapsed(0) == '00:00:00'
    assert format_elapsed(90_500) == '00:01:30'
    assert format_elapsed(3_723_000) == '01:02:03'


def test_format_elapsed_never_negative():
    assert format_elapsed(-5000) == '00:00:00'


def test_progress_bar():
    assert progress_bar(0) == '░' * 10
    assert progress_bar(50) == '█' * 5 + '░' * 5
    assert progress_bar(100) == '█' * 10


def test_progress_bar_clamps():
    assert progress_bar(250, width=4) == '████'
    assert progress_bar(-10, width=4) == '░░░░'
