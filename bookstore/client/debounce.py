import threading


class Debouncer:
    """
    Cancel-and-restart timer: every call drops the pending one, so only the
    last call inside ``wait`` seconds runs.

    ``timer_factory`` takes the same arguments as ``threading.Timer``.
    """

    def __init__(self, wait: float = 0.5, timer_factory=threading.Timer):
        self.wait = wait
        self._timer_factory = timer_factory
        self._timer = None
        self._generation = 0
        self._lock = threading.Lock()

    @property
    def pending(self) -> bool:
        return self._timer is not None

    def call(self, fn, *args, **kwargs):
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._generation += 1
            timer = self._timer_factory(self.wait, self._fire, args=(self._generation, fn, args, kwargs))
            timer.daemon = True
            self._timer = timer
        timer.start()
        return timer

    def _fire(self, generation, fn, args, kwargs):
        with self._lock:
            # a timer that lost the cancel race must not run
            if generation != self._generation:
                return
            self._timer = None
        fn(*args, **kwargs)

    def cancel(self):
        with self._lock:
            self._generation += 1
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
