"""Monte Carlo evaluation, strategy comparison and baseline agents."""
