from spanreed.bridge import FileSystemVault, HandlerResult, SpanreedBridge, default_registry

if __name__ == "__main__":
    registry = default_registry()

    @registry.method("ping")
    async def ping(host, params):
        return HandlerResult.ok("pong")

    mybridge = SpanreedBridge(
        host=FileSystemVault("vault", daily_folder="Daily"),
        registry=registry,
        name="MyBridge",
    )

    mybridge.run(config_path="bridge_config.json")
