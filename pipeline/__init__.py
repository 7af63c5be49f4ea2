"""Editorial content pipeline core: generation, sanitising, images and orchestration."""
