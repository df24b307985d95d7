import argparse

from spanreed import settings as env
from spanreed.bridge import FileSystemVault, SpanreedBridge
from spanreed.utils import VaultConfig, load_config


def main(argv=None):
    parser = argparse.ArgumentParser(description="Serve vault commands from a Redis task queue.")
    parser.add_argument("--config", default=env.SPANREED_CONFIG, help="Path to the bridge config json")
    parser.add_argument("--vault", default=None, help="Vault root (overrides vault.root in the config)")
    args = parser.parse_args(argv)

    vault_config = VaultConfig()
    problems = vault_config.merge_in(**load_config(args.config).get("vault", {}))
    if args.vault:
        vault_config.root = args.vault

    bridge = SpanreedBridge(host=FileSystemVault(vault_config.root, daily_folder=vault_config.daily_folder))
    for problem in problems:
        bridge.logger.warning(problem)
    bridge.run(config_path=args.config)


if __name__ == "__main__":
    main()
