"""
Evaluation script for trained Starfall agents
"""

import argparse
from typing import Optional

import numpy as np

from stable_baselines3 import PPO, DQN
from stable_baselines3.common.vec_env import DummyVecEnv, VecNormalize

from starfall.shooter import ShooterEnv
from rl.configs.shooter_config import ENV_CONFIG
from rl.train import MultiDiscreteToDiscreteWrapper

ALGORITHMS = {"ppo": PPO, "dqn": DQN}


def _summarize(title: str, episode_rewards, episode_scores, episode_levels):
    mean_reward = float(np.mean(episode_rewards))
    std_reward = float(np.std(episode_rewards))

    print("\n" + "=" * 50)
    print(f"{title} ({len(episode_rewards)} episodes):")
    print(f"Mean Reward: {mean_reward:.2f} ± {std_reward:.2f}")
    print(f"Mean Score: {np.mean(episode_scores):.1f}  Best Score: {np.max(episode_scores)}")
    print(f"Mean Level: {np.mean(episode_levels):.2f}")
    print("=" * 50)

    return {
        "mean_reward": mean_reward,
        "std_reward": std_reward,
        "mean_score": float(np.mean(episode_scores)),
        "episode_rewards": episode_rewards,
        "episode_scores": episode_scores,
        "episode_levels": episode_levels,
    }


def evaluate_model(
    model_path: str,
    algo: str = "ppo",
    n_episodes: int = 10,
    render: bool = False,
    vec_normalize_path: Optional[str] = None,
):
    """
    Evaluate a trained model

    Args:
        model_path: Path to the saved model
        algo: Algorithm used ('ppo' or 'dqn')
        n_episodes: Number of episodes to evaluate
        render: Whether to show the game in an arcade window
        vec_normalize_path: Path to VecNormalize stats (for PPO)
    """
    if algo not in ALGORITHMS:
        raise ValueError(f"Unknown algorithm: {algo}")
    model = ALGORITHMS[algo].load(model_path)

    def _make():
        env = ShooterEnv(render_mode="human" if render else None, **ENV_CONFIG)
        if algo == "dqn":
            env = MultiDiscreteToDiscreteWrapper(env)
        return env

    env = DummyVecEnv([_make])
    if vec_normalize_path:
        env = VecNormalize.load(vec_normalize_path, env)
        env.training = False
        env.norm_reward = False

    episode_rewards, episode_scores, episode_levels = [], [], []
    for episode in range(n_episodes):
        obs = env.reset()
        total_reward = 0.0
        while True:
            action, _ = model.predict(obs, deterministic=True)
            obs, reward, done, info = env.step(action)
            total_reward += float(reward[0])
            if done[0]:
                break

        # DummyVecEnv auto-resets, but the terminal info survives
        episode_rewards.append(total_reward)
        episode_scores.append(info[0]["score"])
        episode_levels.append(info[0]["level"])
        print(f"Episode {episode + 1}/{n_episodes}: Reward = {total_reward:.2f}, "
              f"Score = {info[0]['score']}, Level = {info[0]['level']}")

    env.close()
    return _summarize("Evaluation Results", episode_rewards, episode_scores, episode_levels)


def compare_with_random(n_episodes: int = 10, seed: Optional[int] = None):
    """Evaluate a random policy baseline"""
    print("Evaluating random policy baseline...")

    env = ShooterEnv(render_mode=None, **ENV_CONFIG)
    episode_rewards, episode_scores, episode_levels = [], [], []

    for episode in range(n_episodes):
        obs, info = env.reset(seed=seed + episode if seed is not None else None)
        env.action_space.seed(seed + episode if seed is not None else None)

        terminated = truncated = False
        total_reward = 0.0
        while not (terminated or truncated):
            obs, reward, terminated, truncated, info = env.step(env.action_space.sample())
            total_reward += reward

        episode_rewards.append(total_reward)
        episode_scores.append(info["score"])
        episode_levels.append(info["level"])

    env.close()
    return _summarize("Random Policy Results", episode_rewards, episode_scores, episode_levels)


def main():
    parser = argparse.ArgumentParser(description="Evaluate trained Starfall agent")
    parser.add_argument("--model", type=str, default=None, help="Path to saved model")
    parser.add_argument("--algo", type=str, default="ppo", choices=sorted(ALGORITHMS))
    parser.add_argument("--episodes", type=int, default=10)
    parser.add_argument("--render", action="store_true", help="Show the game while evaluating")
    parser.add_argument("--vec-normalize", type=str, default=None, help="Path to VecNormalize stats")
    parser.add_argument("--random", action="store_true", help="Evaluate a random baseline")
    parser.add_argument("--seed", type=int, default=None)
    args = parser.parse_args()

    if args.random or args.model is None:
        compare_with_random(n_episodes=args.episodes, seed=args.seed)
    if args.model is not None:
        evaluate_model(
            args.model,
            algo=args.algo,
            n_episodes=args.episodes,
            render=args.render,
            vec_normalize_path=args.vec_normalize,
        )


if __name__ == "__main__":
    main()
