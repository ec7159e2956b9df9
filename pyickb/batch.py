import concurrent.futures
import json
import logging
import pyickb.errors
import pyickb.rpc
import threading
import typing

log = logging.getLogger(__name__)


class Batcher(pyickb.rpc.Client):
    # Coalesces the calls issued within a short window into one batch request.
    #
    # The pending table maps a key built from method and params to the call and the futures waiting on it. Identical
    # calls share one slot. The lock guards only the swap of the table; the network call runs outside of it, so calls
    # enqueued during a flush land in the next batch.

    def __init__(self, client: pyickb.rpc.Client, delay: float = 0.05) -> None:
        super().__init__(client.url, client.timeout)
        self.client = client
        self.delay = delay
        self.lock = threading.Lock()
        self.pending: typing.Dict[str, typing.Tuple[str, typing.List, typing.List[concurrent.futures.Future]]] = {}

    def call(self, method: str, params: typing.List) -> typing.Any:
        return self.enqueue(method, params).result()

    def enqueue(self, method: str, params: typing.List) -> concurrent.futures.Future:
        key = json.dumps([method, params])
        future = concurrent.futures.Future()
        with self.lock:
            if not self.pending:
                timer = threading.Timer(self.delay, self.flush)
                timer.daemon = True
                timer.start()
            self.pending.setdefault(key, (method, params, []))[2].append(future)
        return future

    def flush(self) -> None:
        with self.lock:
            pending, self.pending = self.pending, {}
        if not pending:
            return
        slots = list(pending.values())
        log.debug('flush %s calls', len(slots))
        try:
            result = self.client.batch([(e[0], e[1]) for e in slots])
        except Exception as e:
            for _, _, futures in slots:
                for f in futures:
                    f.set_exception(e)
            return
        for (method, _, futures), r in zip(slots, result):
            for f in futures:
                if 'error' in r:
                    f.set_exception(pyickb.errors.RPCError(f'{method}: {r["error"].get("message", "")}', r['error']))
                else:
                    f.set_result(r['result'])
