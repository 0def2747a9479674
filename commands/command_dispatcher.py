from services.exceptions import ConfigurationError


class ServiceDispatcher:
    def __init__(self):
        self.services = {}
        self.descriptions = {}

    def register_service(self, service_name: str, handler, description: str = ""):
        self.services[service_name.lower()] = handler
        self.descriptions[service_name.lower()] = description

    def available_services(self) -> list[tuple[str, str]]:
        return sorted(self.descriptions.items())

    def dispatch(self, service_name: str, config):
        """Run the named service check with the probe configuration"""
        service_name = service_name.lower()
        if service_name not in self.services:
            raise ConfigurationError(f"Service '{service_name}' not recognized.")
        return self.services[service_name](config)
