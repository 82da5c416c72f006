"""
Training configuration for the Starfall environment
Reward shaping presets, algorithm hyperparameters and training settings
"""

# Environment parameters
ENV_CONFIG = {
    # "render_mode": None,  # Don't render during training
    "width": 480,
    "height": 640,
    "dt_ms": 1000 / 30,
    "max_steps": 3600,  # 2 minutes at 30 FPS
    "k_enemies": 5,
    "m_power_ups": 2,
}

# ==============================================================================
# REWARD SHAPING CONFIGURATIONS
# ==============================================================================

# BASELINE: follow the score, lose a point per life
REWARD_CONFIG_BASELINE = {
    "name": "baseline",
    "description": "Score-following reward with moderate life penalties",
    "R_SCORE": 0.01,     # Per point of in-game score (a kill is worth 1.0)
    "R_HIT": 1.0,        # Per life lost
    "R_TIME": 0.001,     # Small time penalty
    "R_DEATH": 5.0,      # Game over penalty
}

# SURVIVAL: dodge first, shoot second
REWARD_CONFIG_SURVIVAL = {
    "name": "survival",
    "description": "Heavier life and death penalties, no time penalty",
    "R_SCORE": 0.005,
    "R_HIT": 3.0,
    "R_TIME": 0.0,
    "R_DEATH": 10.0,
}

REWARD_CONFIGS = {
    "baseline": REWARD_CONFIG_BASELINE,
    "survival": REWARD_CONFIG_SURVIVAL,
}

# ==============================================================================
# ALGORITHM HYPERPARAMETERS
# ==============================================================================

PPO_CONFIG = {
    "policy": "MlpPolicy",
    "learning_rate": 3e-4,
    "n_steps": 1024,
    "batch_size": 256,
    "n_epochs": 10,
    "gamma": 0.99,
    "gae_lambda": 0.95,
    "clip_range": 0.2,
    "ent_coef": 0.01,
    "vf_coef": 0.5,
    "max_grad_norm": 0.5,
    "verbose": 1,
}

DQN_CONFIG = {
    "policy": "MlpPolicy",
    "learning_rate": 1e-4,
    "buffer_size": 100_000,
    "learning_starts": 1000,
    "batch_size": 128,
    "tau": 1.0,
    "gamma": 0.99,
    "train_freq": 4,
    "gradient_steps": 1,
    "target_update_interval": 1000,
    "exploration_fraction": 0.1,
    "exploration_initial_eps": 1.0,
    "exploration_final_eps": 0.05,
    "verbose": 1,
}

# ==============================================================================
# TRAINING SETTINGS
# ==============================================================================

TRAINING_CONFIG = {
    "total_timesteps": 500_000,
    "save_freq": 10_000,
    "eval_freq": 5_000,
    "log_dir": "./logs",
    "model_dir": "./models",
    "tensorboard_log": "./tensorboard_logs",
}
