import warnings

# Suppress Streamlit warnings globally
warnings.filterwarnings("ignore", category=UserWarning, message=".*ScriptRunContext.*", module="streamlit.runtime.scriptrunner")

import argparse
import logging
import random
import sys

from doubles_scheduler import (
    MAX_TRIALS,
    RECENT_WINDOW,
    ActivePlayer,
    CourtAssigner,
    RosterValidationError,
    assess_fairness,
    pair_counts,
)
from round_edits import next_round_no, rollback, swap_players, validate_round
from session_io import SESSION_FILE, load_session, rounds_to_csv, save_session

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(log_level=logging.INFO):
    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
    root_logger.addHandler(console_handler)
    return root_logger


def auto_court_count(num_players):
    # Dynamically determine courts based on player count
    if num_players < 4:
        return 0
    elif num_players <= 7:
        return 1
    elif num_players <= 11:
        return 2
    elif num_players <= 15:
        return 3
    return 4


# --- Global Configurations ---
parser = argparse.ArgumentParser(description="Doubles Practice Scheduler", allow_abbrev=False)
parser.add_argument("--mode", type=str, choices=["terminal", "streamlit"], help="Mode to run the application in (terminal or streamlit)", default="streamlit")
parser.add_argument('--players', type=int, help='Number of players (terminal mode)', default=10)
parser.add_argument('--courts', type=int, help='Number of courts (terminal mode, default: auto)')
parser.add_argument('--rounds', type=int, help='Number of rounds to simulate (terminal mode)', default=12)
parser.add_argument('--seed', type=str, help='Random seed for reproducible rounds', default="")
parser.add_argument('--window', type=int, help='Recent partner/opponent memory per player', default=RECENT_WINDOW)
parser.add_argument('--trials', type=int, help='Randomized trials per round', default=MAX_TRIALS)
parser.add_argument('--session-file', type=str, help='Session file to load/save', default=SESSION_FILE)
parser.add_argument('--debug', action='store_true', help='Log search details')
args, unknown = parser.parse_known_args()

# Use --mode argument directly for mode detection
is_terminal_mode = args.mode == "terminal"

unique_emojis = [
    "❤️", "⭐", "⚽", "🌳", "🚗", "🔑", "⏰", "🎈", "🍕", "💧",
    "⚡", "🌙", "🐙", "🌵", "👻", "🚀", "👑", "🎶", "💡", "⚓",
    "💎", "🧩", "🦋", "🍦", "🚲", "📚", "🎯", "⚙️",
]

# Import Streamlit only if not in terminal mode
if not is_terminal_mode:
    import streamlit as st

    st.set_page_config(page_title="Doubles Practice Scheduler", layout="wide")

    # Initialize session state variables if not present
    if 'players' not in st.session_state:
        st.session_state['players'] = []
    if 'history' not in st.session_state:
        st.session_state['history'] = []
    if 'proposal' not in st.session_state:
        st.session_state['proposal'] = None

    # Helper: assign unique emoji
    def assign_unique_emoji(existing_emojis):
        for emoji in unique_emojis:
            if emoji not in existing_emojis:
                return emoji
        return "🏸"

    def player_labels():
        return {p['id']: f"{p['emoji']} {p['name']}" for p in st.session_state.players}

    def get_emoji_with_name(pid):
        return player_labels().get(pid, f"#{pid}")

    def played_offsets():
        return {p['id']: p.get('played_offset', 0) for p in st.session_state.players}

    def active_roster():
        return [
            ActivePlayer(p['id'], sequence_number=i + 1, played_offset=p.get('played_offset', 0))
            for i, p in enumerate(st.session_state.players) if p.get('active', True)
        ]

    # --- Sidebar: Session Setup ---
    st.sidebar.markdown("## Session Setup")
    num_active = len([p for p in st.session_state.players if p.get('active', True)])
    auto_courts = auto_court_count(num_active)
    allowed_courts = [i for i in range(0, 9)]
    court_override = st.sidebar.checkbox("Override number of courts?", value=False)
    if court_override:
        num_courts = st.sidebar.selectbox("Number of Courts", allowed_courts, index=allowed_courts.index(auto_courts))
    else:
        num_courts = auto_courts
        st.sidebar.markdown(f"**Number of Courts:** {num_courts} (auto)")
    session_seed = st.sidebar.text_input("Random Seed (optional for repeatable rounds)", value=args.seed, key="session_seed")
    recent_window = st.sidebar.number_input("Partner/opponent memory", min_value=1, max_value=20, value=args.window, key="recent_window")
    max_trials = st.sidebar.number_input("Search trials per round", min_value=0, max_value=2000, value=args.trials, key="max_trials")

    # Seeded generator lives across reruns so each round draws fresh numbers
    if st.session_state.get('rng_seed') != session_seed or 'rng' not in st.session_state:
        st.session_state['rng'] = random.Random(session_seed) if session_seed else random.Random()
        st.session_state['rng_seed'] = session_seed

    # --- Save/Load Session ---
    st.sidebar.markdown("---")
    st.sidebar.markdown("### Save/Load Session")
    session_file = st.sidebar.text_input("Session File", value=args.session_file, key="session_file")
    if st.sidebar.button("💾 Save Session", key="save_session_btn"):
        try:
            save_session(session_file, st.session_state.players, st.session_state.history)
            st.sidebar.success(f"Session saved to {session_file}")
        except OSError as e:
            st.sidebar.error(f"Error saving session: {e}")
    if st.sidebar.button("📂 Load Session", key="load_session_btn"):
        try:
            players, history = load_session(session_file)
            st.session_state['players'] = players
            st.session_state['history'] = history
            st.session_state['proposal'] = None
            st.sidebar.success(f"Session loaded from {session_file}")
        except (OSError, ValueError) as e:
            st.sidebar.error(f"Error loading session: {e}")

    # --- App Title ---
    st.markdown("""
    <h1 style='font-size:2.5rem; display:flex; align-items:center;'>
        <span style='font-size:2.5rem; margin-right:0.5em;'>🏸</span>Doubles Practice Scheduler
    </h1>
    """, unsafe_allow_html=True)

    # --- Custom CSS for styling ---
    st.markdown("""
    <style>
    .court-box, .court-box-green {
        background: #b2d8e6;
        border-radius: 10px;
        padding: 1em 1.5em;
        display: flex;
        align-items: center;
        font-size: 1.35em !important;
        font-weight: 700 !important;
        color: #23272b !important;
    }
    .court-box-green {
        background: #a8e6a3;
    }
    .court-label {
        font-weight: bold;
        margin-bottom: 0.2em;
    }
    .rest-box {
        color: #ffb347;
        font-weight: 600;
        font-size: 1.05em;
        margin-bottom: 1em;
    }
    .vs-label {
        color: #444;
        font-weight: bold;
        margin: 0 0.5em;
    }
    </style>
    """, unsafe_allow_html=True)

    def show_round(rnd):
        for court in rnd.courts:
            st.markdown(f"<div class='court-label'>Court {court.court_no}</div>", unsafe_allow_html=True)
            st.markdown("""
            <div style='display: flex; align-items: center; background: #23272b; border-radius: 12px; margin-bottom: 0.5em; padding: 0.5em;'>
                <div class='court-box'>{team1}</div>
                <div class='vs-label'>vs</div>
                <div class='court-box-green'>{team2}</div>
            </div>
            """.format(
                team1='  '.join(get_emoji_with_name(pid) for pid in court.pair_a),
                team2='  '.join(get_emoji_with_name(pid) for pid in court.pair_b),
            ), unsafe_allow_html=True)
        if rnd.rests:
            rest_str = ', '.join(get_emoji_with_name(pid) for pid in rnd.rests)
            st.markdown(f"<b>• Resting:</b> <span class='rest-box'>{rest_str}</span>", unsafe_allow_html=True)

    # --- Tabs ---
    tabs = st.tabs(["👥 Players", "🏸 Round", "📊 Stats & Export"])

    # --- Tab 1: Players ---
    with tabs[0]:
        st.markdown("## 👥 Player Roster")
        col_add, col_clear = st.columns([2, 2])
        with col_add:
            if st.button("➕ Add Player", key="add_player_btn"):
                existing_emojis = [p['emoji'] for p in st.session_state.players]
                next_id = max((p['id'] for p in st.session_state.players), default=0) + 1
                offset = 0
                if st.session_state.history:
                    # Late joiners start level with the current average
                    roster_ids = [p.id for p in active_roster()]
                    fairness = assess_fairness(roster_ids, st.session_state.history, played_offsets())
                    offset = int(fairness['avg_play_count'])
                st.session_state.players.append({
                    'id': next_id,
                    'name': f'Player {next_id}',
                    'emoji': assign_unique_emoji(existing_emojis),
                    'active': True,
                    'played_offset': offset,
                })
        with col_clear:
            if st.button("🗑️ Clear All Players", key="clear_players_btn"):
                st.session_state['confirm_clear_players'] = True
            if st.session_state.get('confirm_clear_players', False):
                st.warning("Are you sure you want to remove all players and rounds?")
                col1, col2 = st.columns(2)
                with col1:
                    if st.button("Confirm Remove All Players", key="confirm_remove_players_btn"):
                        st.session_state.players = []
                        st.session_state.history = []
                        st.session_state.proposal = None
                        st.session_state['confirm_clear_players'] = False
                        st.rerun()
                with col2:
                    if st.button("Cancel", key="cancel_remove_players_btn"):
                        st.session_state['confirm_clear_players'] = False
        st.caption("Inactive players are left out of new rounds but keep their history.")
        for i, p in enumerate(st.session_state.players):
            with st.expander(f"{p['emoji']} #{p['id']}: {p['name']}", expanded=False):
                cols = st.columns([3, 1, 2, 1])
                with cols[0]:
                    p['name'] = st.text_input(f"Name {p['id']}", value=p['name'], key=f"name_{p['id']}")
                with cols[1]:
                    p['emoji'] = st.text_input(f"Emoji {p['id']}", value=p['emoji'], max_chars=2, key=f"emoji_{p['id']}")
                with cols[2]:
                    p['active'] = st.checkbox("Active", value=p.get('active', True), key=f"active_{p['id']}")
                with cols[3]:
                    if st.button("➖", key=f"remove_{p['id']}"):
                        st.session_state.players.pop(i)
                        st.rerun()

    # --- Tab 2: Round ---
    with tabs[1]:
        history = st.session_state.history
        round_no = next_round_no(history)
        st.markdown(f"## 🏸 Round {round_no}")
        col_gen, col_confirm, col_back = st.columns(3)
        with col_gen:
            if st.button("🔶 Generate Round", key="generate_round_btn", use_container_width=True):
                try:
                    assigner = CourtAssigner(max_trials=int(max_trials), recent_window=int(recent_window),
                                             rng=st.session_state['rng'])
                    assignment = assigner.generate_round(active_roster(), num_courts, history)
                    st.session_state['proposal'] = assignment.to_round(round_no)
                except RosterValidationError as e:
                    st.error(f"Error generating round: {e}")
        with col_confirm:
            if st.button("✅ Confirm Round", key="confirm_round_btn", use_container_width=True,
                         disabled=st.session_state.proposal is None):
                try:
                    validate_round(st.session_state.proposal, [p.id for p in active_roster()])
                    st.session_state.history = history + [st.session_state.proposal]
                    st.session_state.proposal = None
                    st.rerun()
                except ValueError as e:
                    st.error(f"Cannot confirm round: {e}")
        with col_back:
            if st.button("↩️ Roll Back Last Round", key="rollback_btn", use_container_width=True,
                         disabled=not history):
                st.session_state.history = rollback(history, history[-1].round_no)
                st.session_state.proposal = None
                st.rerun()

        proposal = st.session_state.proposal
        if proposal is not None:
            show_round(proposal)
            st.markdown("#### Adjust")
            ids = proposal.playing_ids() + list(proposal.rests)
            labels = player_labels()
            c1, c2, c3 = st.columns([2, 2, 1])
            with c1:
                swap_a = st.selectbox("Player", ids, format_func=lambda pid: labels.get(pid, pid), key="swap_a")
            with c2:
                swap_b = st.selectbox("Swap with", [pid for pid in ids if pid != swap_a],
                                      format_func=lambda pid: labels.get(pid, pid), key="swap_b")
            with c3:
                if st.button("🔁 Swap", key="swap_btn") and swap_b is not None:
                    st.session_state.proposal = swap_players(proposal, swap_a, swap_b)
                    st.rerun()
        else:
            st.write("Click 'Generate Round' to propose the next round.")

        if history:
            st.markdown("---")
            st.markdown("### Previous Rounds")
            for rnd in reversed(history[-3:]):
                st.markdown(f"**Round {rnd.round_no}**")
                show_round(rnd)

    # --- Tab 3: Stats & Export ---
    with tabs[2]:
        st.header("📊 Fairness Assessment")
        history = st.session_state.history
        if not history:
            st.info("No confirmed rounds yet.")
        else:
            all_ids = [p['id'] for p in st.session_state.players]
            fairness = assess_fairness(all_ids, history, played_offsets())
            st.write(f"Rounds: {fairness['total_rounds']} · Longest rest streak: {fairness['max_consec_rest']}")

            for title, per_player, stats_key, unit in (
                ("Games Played Per Player", 'games_played', 'games_played_stats', 'games'),
                ("Rests Per Player", 'rests', 'rests_stats', 'rests'),
                ("Number of Unique Partners Per Player", 'partners_count', 'partners_stats', 'partners'),
                ("Number of Unique Opponents Per Player", 'opponents_count', 'opponents_stats', 'opponents'),
            ):
                with st.expander(title, expanded=per_player == 'games_played'):
                    col1, col2 = st.columns(2)
                    with col1:
                        for pid, count in fairness[per_player].items():
                            st.write(f"{get_emoji_with_name(pid)}: {count} {unit}")
                    with col2:
                        stats = fairness[stats_key]
                        st.write("**Summary:**")
                        st.write(f"- Most: {stats['max']}")
                        st.write(f"- Fewest: {stats['min']}")
                        st.write(f"- Difference (Range): {stats['range']}")
                        st.write(f"- Spread (StdDev): {stats['stddev']:.2f}")

            with st.expander("Partner Pairs"):
                rows = [
                    {'Pair': f"{get_emoji_with_name(a)} & {get_emoji_with_name(b)}", 'Times partnered': n}
                    for (a, b), n in sorted(pair_counts(history).items(), key=lambda kv: -kv[1])
                ]
                st.table(rows)

            st.download_button("Download Rounds as CSV", rounds_to_csv(history, player_labels()),
                               file_name="practice_rounds.csv", mime="text/csv")


def display_fairness_stats(fairness):
    print("\n📊 Fairness Assessment")
    print("- Range: The difference between the most and least. A smaller range is better.")
    print("- StdDev (Standard Deviation): How spread out the numbers are. Smaller is better.\n")
    for title, per_player, stats_key, unit in (
        ("Games Played Per Player", 'games_played', 'games_played_stats', 'games'),
        ("Rests Per Player", 'rests', 'rests_stats', 'rests'),
        ("Number of Unique Partners Per Player", 'partners_count', 'partners_stats', 'partners'),
        ("Number of Unique Opponents Per Player", 'opponents_count', 'opponents_stats', 'opponents'),
    ):
        print(f"**{title}:**")
        for pid, count in fairness[per_player].items():
            print(f"Player {pid}: {count} {unit}")
        stats = fairness[stats_key]
        print(f"  min={stats['min']}, max={stats['max']}, stddev={stats['stddev']:.2f}, range={stats['range']}\n")
    print(f"Longest rest streak: {fairness['max_consec_rest']}")


def run_terminal(options):
    setup_logging(logging.DEBUG if options.debug else logging.INFO)
    num_courts = options.courts if options.courts is not None else auto_court_count(options.players)
    roster = [ActivePlayer(i + 1, sequence_number=i + 1) for i in range(options.players)]
    rng = random.Random(options.seed) if options.seed else random.Random()
    assigner = CourtAssigner(max_trials=options.trials, recent_window=options.window, rng=rng)

    history = []
    print(f"\n🗓️ {options.players} players, {num_courts} courts, {options.rounds} rounds")
    for _ in range(options.rounds):
        rnd = assigner.generate_round(roster, num_courts, history).to_round(next_round_no(history))
        history.append(rnd)
        print(f"\nRound {rnd.round_no}")
        for court in rnd.courts:
            t1 = ' & '.join(f"Player {pid}" for pid in court.pair_a)
            t2 = ' & '.join(f"Player {pid}" for pid in court.pair_b)
            print(f"Court {court.court_no}: {t1} vs {t2}")
        if rnd.rests:
            print(f"🛋️ Resting: {', '.join(f'Player {pid}' for pid in rnd.rests)}")

    display_fairness_stats(assess_fairness([p.id for p in roster], history))
    try:
        save_session(options.session_file, [
            {'id': p.id, 'name': f'Player {p.id}', 'emoji': unique_emojis[i % len(unique_emojis)], 'active': True}
            for i, p in enumerate(roster)
        ], history)
        print(f"\nSession saved to {options.session_file}")
    except OSError as e:
        print(f"Warning: could not save session file: {e}")


# --- Terminal Mode ---
if __name__ == "__main__" and is_terminal_mode:
    try:
        run_terminal(args)
    except (RosterValidationError, ValueError) as e:
        print(f"Error generating rounds: {e}")
        sys.exit(1)
