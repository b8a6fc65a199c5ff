import importlib

from LunarRecon.core.engine import serialize_value, deserialize_value


class Stateful:
    """
    Persistence hooks shared by losses and distributions.

    Subclasses list the constructor arguments they persist in `_config_fields`.
    `get_config`/`from_config` rebuild an equivalent object; `state_dict`/
    `load_state_dict` copy the same fields onto an existing one. Fields must
    hold plain values or other Stateful objects; anything else (a duck-typed
    strategy, for instance) raises ValueError instead of being stringified.
    """
    _config_fields = ()

    def _serialize_field(self, name):
        val = getattr(self, name)
        out = serialize_value(val)
        if isinstance(out, str) and not isinstance(val, str):
            raise ValueError(
                f"{self.__class__.__name__}.{name} of type {type(val).__name__} "
                f"cannot be persisted; it must subclass Stateful"
            )
        return out

    def state_dict(self):
        out = {"_type": self.__class__.__name__}
        for name in self._config_fields:
            val = getattr(self, name)
            if isinstance(val, Stateful):
                out[name] = val.state_dict()
            else:
                out[name] = self._serialize_field(name)
        return out

    def _check_state(self, state):
        if not isinstance(state, dict):
            raise ValueError(f"Expected a state dict for {self.__class__.__name__}, got {type(state).__name__}")
        state_type = state.get("_type", self.__class__.__name__)
        if state_type != self.__class__.__name__:
            raise ValueError(f"Cannot load {state_type} state into {self.__class__.__name__}")
        for name in self._config_fields:
            if name not in state:
                continue
            current = getattr(self, name, None)
            saved = state[name]
            if isinstance(current, Stateful):
                current._check_state(saved)
            elif isinstance(saved, dict) and "_type" in saved:
                raise ValueError(
                    f"Cannot load {saved['_type']} state into {self.__class__.__name__}.{name} "
                    f"of type {type(current).__name__}"
                )
            elif not isinstance(current, (bool, int, float, str, list, tuple)) and current is not None:
                raise ValueError(
                    f"Cannot restore {self.__class__.__name__}.{name} of type {type(current).__name__} from state"
                )

    def load_state_dict(self, state):
        # Validate the whole tree first so a rejected state leaves nothing half-loaded
        self._check_state(state)
        self._apply_state(state)

    def _apply_state(self, state):
        for name in self._config_fields:
            if name not in state:
                continue
            current = getattr(self, name, None)
            if isinstance(current, Stateful):
                current._apply_state(state[name])
            else:
                setattr(self, name, state[name])

    def get_config(self):
        return {
            "module": self.__class__.__module__,
            "class": self.__class__.__name__,
            "params": {
                name: self._serialize_field(name)
                for name in self._config_fields
            }
        }

    @classmethod
    def from_config(cls, config, **kwargs):
        # Import the module and class
        module = importlib.import_module(config["module"])
        klass = getattr(module, config["class"])

        params = {k: deserialize_value(v) for k, v in config.get("params", {}).items()}
        params.update(kwargs)
        return klass(**params)
