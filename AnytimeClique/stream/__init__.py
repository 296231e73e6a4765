from AnytimeClique.stream.anytime import CliqueSearchStream, Subscription, find_biggest_clique
from AnytimeClique.stream.model import CliqueFound

__all__ = ["CliqueFound", "CliqueSearchStream", "Subscription", "find_biggest_clique"]
